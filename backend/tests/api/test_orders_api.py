"""
Tests for order approval and PO validation endpoints
"""
import pytest

from app.models.print_queue import PrintQueueEntry
from tests.factories import create_test_customer, create_test_order, create_test_order_item


def _pending_order(db, **kwargs):
    order = create_test_order(db, **kwargs)
    create_test_order_item(db, order=order)
    create_test_order_item(db, order=order)
    create_test_order_item(db, order=order, is_production=False, product_name="Rush Fee")
    db.commit()
    return order


class TestApproveOrder:
    """Tests for POST /api/v1/orders/{order_id}/approve"""

    @pytest.mark.api
    def test_approve_success(self, client, db, office_headers):
        # Setup
        order = _pending_order(db)

        # Execute
        response = client.post(f"/api/v1/orders/{order.id}/approve", headers=office_headers)

        # Verify
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "approved"
        assert data["approved_at"] is not None
        assert data["print_queue_items_added"] == 2
        assert data["summary"] == "Approval successful: 2 items added to print queue"
        assert db.query(PrintQueueEntry).count() == 2

    @pytest.mark.api
    def test_approve_twice_returns_invalid_transition(self, client, db, office_headers):
        order = _pending_order(db)
        client.post(f"/api/v1/orders/{order.id}/approve", headers=office_headers)

        response = client.post(f"/api/v1/orders/{order.id}/approve", headers=office_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_TRANSITION"
        assert body["details"]["current_state"] == "approved"

    @pytest.mark.api
    def test_approve_with_duplicate_po_warns(self, client, db, office_headers):
        customer = create_test_customer(db)
        create_test_order(db, customer=customer, po_number="PO-1", order_number="SO-OLD")
        order = _pending_order(db, customer=customer)

        response = client.post(
            f"/api/v1/orders/{order.id}/approve",
            json={"po_number": "PO-1"},
            headers=office_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["warnings"] == [
            'Warning: PO # "PO-1" is already used in Order #SO-OLD. Do you want to proceed?'
        ]
        assert data["summary"].endswith(", 1 warnings")

    @pytest.mark.api
    def test_approve_missing_order(self, client, office_headers):
        response = client.post("/api/v1/orders/9999/approve", headers=office_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.api
    def test_approve_requires_queue_role(self, client, db, warehouse_headers):
        order = _pending_order(db)

        response = client.post(f"/api/v1/orders/{order.id}/approve", headers=warehouse_headers)

        assert response.status_code == 403


class TestResyncPrintQueue:
    """Tests for POST /api/v1/orders/{order_id}/resync-print-queue"""

    @pytest.mark.api
    def test_resync_after_entries_removed(self, client, db, office_headers):
        order = _pending_order(db)
        client.post(f"/api/v1/orders/{order.id}/approve", headers=office_headers)
        db.query(PrintQueueEntry).delete()
        db.commit()

        response = client.post(
            f"/api/v1/orders/{order.id}/resync-print-queue", headers=office_headers
        )

        assert response.status_code == 200
        assert response.json()["print_queue_items_added"] == 2

    @pytest.mark.api
    def test_resync_pending_order_rejected(self, client, db, office_headers):
        order = _pending_order(db)

        response = client.post(
            f"/api/v1/orders/{order.id}/resync-print-queue", headers=office_headers
        )

        assert response.status_code == 400


class TestPOValidation:
    """Tests for the PO duplicate check endpoints"""

    @pytest.mark.api
    def test_check_po_duplicate_order_level(self, client, db, office_headers):
        customer = create_test_customer(db)
        order = create_test_order(db, customer=customer, po_number="PO-1")
        db.commit()

        response = client.post(
            "/api/v1/validation/check-po-duplicate",
            json={"customer_id": customer.id, "po_number": "PO-1"},
            headers=office_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_duplicate"] is True
        assert data["conflicting_references"][0]["order_id"] == order.id

    @pytest.mark.api
    def test_check_po_duplicate_item_level(self, client, db, office_headers):
        customer = create_test_customer(db)
        order = create_test_order(db, customer=customer)
        create_test_order_item(db, order=order, product_name="Jet Ski Cover", po_number="PO-2")
        db.commit()

        response = client.post(
            "/api/v1/validation/check-po-duplicate",
            json={"customer_id": customer.id, "po_number": "PO-2", "level": "item"},
            headers=office_headers,
        )

        data = response.json()
        assert data["is_duplicate"] is True
        assert data["conflicting_references"][0]["product_name"] == "Jet Ski Cover"

    @pytest.mark.api
    def test_unknown_level_is_rejected(self, client, office_headers):
        response = client.post(
            "/api/v1/validation/check-po-duplicate",
            json={"customer_id": 1, "po_number": "PO-2", "level": "line"},
            headers=office_headers,
        )

        assert response.status_code == 422

    @pytest.mark.api
    def test_bad_customer_id(self, client, office_headers):
        response = client.post(
            "/api/v1/validation/check-po-duplicate",
            json={"customer_id": 0, "po_number": "PO-2"},
            headers=office_headers,
        )

        assert response.status_code == 400

    @pytest.mark.api
    def test_validate_order_po_excludes_order(self, client, db, office_headers):
        customer = create_test_customer(db)
        order = create_test_order(db, customer=customer, po_number="PO-1")
        db.commit()

        response = client.post(
            "/api/v1/orders/validate-po",
            json={"customer_id": customer.id, "po_number": "PO-1", "exclude_order_id": order.id},
            headers=office_headers,
        )

        assert response.status_code == 200
        assert response.json()["is_duplicate"] is False

    @pytest.mark.api
    def test_orders_by_po(self, client, db, office_headers):
        customer = create_test_customer(db)
        order = create_test_order(db, customer=customer, po_number="PO-1")
        db.commit()

        response = client.get(
            f"/api/v1/orders/by-po/PO-1/{customer.id}", headers=office_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["po_number"] == "PO-1"
        assert [o["id"] for o in data["orders"]] == [order.id]
