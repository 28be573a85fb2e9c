"""
Tests for print queue endpoints under /api/v1/print-queue
"""
import pytest

from app.models.print_queue import PrintQueueEntry
from tests.factories import (
    create_test_order,
    create_test_order_item,
    create_test_queue_entry,
)


def _queued(db, count):
    order = create_test_order(db, status="approved")
    entries = [
        create_test_queue_entry(db, line_item=create_test_order_item(db, order=order))
        for _ in range(count)
    ]
    db.commit()
    return entries


class TestAuth:
    """Role checks shared by every print queue endpoint"""

    @pytest.mark.api
    def test_requires_token(self, client):
        response = client.get("/api/v1/print-queue")
        assert response.status_code == 401

    @pytest.mark.api
    def test_invalid_token(self, client):
        response = client.get(
            "/api/v1/print-queue", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    @pytest.mark.api
    def test_role_without_queue_access(self, client, warehouse_headers):
        response = client.get("/api/v1/print-queue", headers=warehouse_headers)
        assert response.status_code == 403

    @pytest.mark.api
    def test_office_employee_allowed(self, client, office_headers):
        response = client.get("/api/v1/print-queue", headers=office_headers)
        assert response.status_code == 200


class TestListQueue:
    """Tests for GET /api/v1/print-queue"""

    @pytest.mark.api
    def test_list_with_pagination(self, client, db, admin_headers):
        # Setup
        entries = _queued(db, 3)

        # Execute
        response = client.get("/api/v1/print-queue?limit=2", headers=admin_headers)

        # Verify
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["returned"] == 2
        assert [item["id"] for item in data["items"]] == [entries[0].id, entries[1].id]
        assert data["items"][0]["line_item"]["product_name"].startswith("Boat Cover")


class TestNextBatch:
    """Tests for GET /api/v1/print-queue/next-batch"""

    @pytest.mark.api
    def test_full_batch(self, client, db, admin_headers):
        _queued(db, 5)

        response = client.get("/api/v1/print-queue/next-batch", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 4
        assert data["can_print_without_warning"] is True
        assert data["warnings"] is None

    @pytest.mark.api
    def test_partial_batch_includes_dialog_texts(self, client, db, admin_headers):
        _queued(db, 1)

        response = client.get("/api/v1/print-queue/next-batch", headers=admin_headers)

        data = response.json()
        assert data["requires_warning"] is True
        assert data["warnings"]["first"]["title"] == "Incomplete Batch - Only 1 Label"
        assert data["warnings"]["second"]["confirmation_phrase"] == "PRINT"
        assert data["classification"]["waste_percentage"] == 75

    @pytest.mark.api
    def test_empty_queue(self, client, admin_headers):
        response = client.get("/api/v1/print-queue/next-batch", headers=admin_headers)

        data = response.json()
        assert data["items"] == []
        assert data["can_print_without_warning"] is False


class TestAddToQueue:
    """Tests for POST /api/v1/print-queue/add"""

    @pytest.mark.api
    def test_add_and_reject(self, client, db, office_headers):
        order = create_test_order(db, status="approved")
        item = create_test_order_item(db, order=order)
        fee = create_test_order_item(db, order=order, is_production=False)
        db.commit()

        response = client.post(
            "/api/v1/print-queue/add",
            json={"line_item_ids": [item.id, fee.id]},
            headers=office_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["added_count"] == 1
        assert data["added"][0]["added_by"] == "office-1"
        assert data["rejected"] == [{"line_item_id": fee.id, "reason": "not_production_item"}]

    @pytest.mark.api
    def test_invalid_id(self, client, office_headers):
        response = client.post(
            "/api/v1/print-queue/add", json={"line_item_ids": [0]}, headers=office_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestMarkPrinted:
    """Tests for POST /api/v1/print-queue/mark-printed"""

    @pytest.mark.api
    def test_mark_printed(self, client, db, admin_headers):
        entries = _queued(db, 2)

        response = client.post(
            "/api/v1/print-queue/mark-printed",
            json={"queue_entry_ids": [e.id for e in entries]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "marked_count": 2}

    @pytest.mark.api
    def test_already_printed_returns_404(self, client, db, admin_headers):
        entries = _queued(db, 1)
        ids = [entries[0].id]
        client.post("/api/v1/print-queue/mark-printed", json={"queue_entry_ids": ids}, headers=admin_headers)

        response = client.post(
            "/api/v1/print-queue/mark-printed", json={"queue_entry_ids": ids}, headers=admin_headers
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "NOT_FOUND"
        assert body["retryable"] is False
        assert "timestamp" in body

    @pytest.mark.api
    def test_empty_list_returns_400(self, client, admin_headers):
        response = client.post(
            "/api/v1/print-queue/mark-printed", json={"queue_entry_ids": []}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.api
    def test_missing_body_returns_422(self, client, admin_headers):
        response = client.post("/api/v1/print-queue/mark-printed", json={}, headers=admin_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestRemoveAndStatus:

    @pytest.mark.api
    def test_remove(self, client, db, admin_headers):
        entries = _queued(db, 2)

        response = client.request(
            "DELETE",
            "/api/v1/print-queue/remove",
            json={"queue_entry_ids": [entries[0].id]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["removed_count"] == 1
        assert db.query(PrintQueueEntry).count() == 1

    @pytest.mark.api
    def test_status(self, client, db, admin_headers):
        _queued(db, 2)

        response = client.get("/api/v1/print-queue/status", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["unprinted_items"] == 2
        assert data["requires_warning"] is True

    @pytest.mark.api
    def test_validate_batch(self, client, db, admin_headers):
        _queued(db, 4)

        response = client.get("/api/v1/print-queue/validate-batch", headers=admin_headers)

        data = response.json()
        assert data["batch_size"] == 4
        assert data["validated_by"] == "admin-1"
        assert data["recommendations"][0] == "Perfect batch size for optimal paper usage"
