"""
Unit Tests for Order Approval

Approval moves an order pending -> approved, sets approved_at once, checks
the PO number and queues the production lines for label printing.
"""
from datetime import datetime, timedelta

import pytest

from app.core.settings import settings
from app.exceptions import (
    DuplicatePOError,
    InvalidTransitionError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from app.models.audit_log import AuditLog
from app.models.order import Order
from app.models.print_queue import PrintQueueEntry
from app.services.order_approval import PO_VALIDATION_UNAVAILABLE, OrderApprovalService
from app.services.po_validation import POValidationService
from app.services.print_queue import PrintQueueService
from tests.factories import create_test_customer, create_test_order, create_test_order_item

APPROVED_AT = datetime(2025, 6, 1, 9, 30, 0)


@pytest.fixture
def approvals():
    clock = lambda: APPROVED_AT  # noqa: E731
    return OrderApprovalService(
        print_queue=PrintQueueService(clock=clock, capacity=4),
        clock=clock,
    )


def _pending_order(db, production=3, non_production=1, **kwargs):
    order = create_test_order(db, **kwargs)
    for _ in range(production):
        create_test_order_item(db, order=order)
    for _ in range(non_production):
        create_test_order_item(db, order=order, is_production=False, product_name="Shipping")
    db.commit()
    return order


@pytest.mark.unit
class TestApprove:

    def test_approve_queues_production_items_only(self, db, approvals):
        # Setup
        order = _pending_order(db, production=3, non_production=1)

        # Execute
        result = approvals.approve(db, order.id, "office-1")

        # Verify
        assert result.success is True
        assert result.status == "approved"
        assert result.approved_at == APPROVED_AT
        assert result.print_queue_items_added == 3
        assert result.warnings == []
        assert result.queue_error is None
        assert db.query(PrintQueueEntry).count() == 3

        db.expire_all()
        stored = db.get(Order, order.id)
        assert stored.status == "approved"
        assert stored.approved_at == APPROVED_AT

    def test_approve_writes_audit_record(self, db, approvals):
        order = _pending_order(db)

        approvals.approve(db, order.id, "office-1")

        audit = db.query(AuditLog).filter(AuditLog.action == "order.approved").one()
        assert audit.actor_id == "office-1"
        assert audit.entity_id == str(order.id)
        assert audit.old_value["status"] == "pending"
        assert audit.new_value["status"] == "approved"

    def test_already_approved_is_rejected(self, db, approvals):
        order = _pending_order(db)
        approvals.approve(db, order.id, "office-1")

        with pytest.raises(InvalidTransitionError) as exc_info:
            approvals.approve(db, order.id, "office-1")

        assert exc_info.value.details["current_state"] == "approved"
        assert db.query(PrintQueueEntry).count() == 3

    def test_cancelled_order_cannot_be_approved(self, db, approvals):
        order = _pending_order(db, status="cancelled")

        with pytest.raises(InvalidTransitionError):
            approvals.approve(db, order.id, "office-1")

    def test_missing_order(self, db, approvals):
        with pytest.raises(NotFoundError):
            approvals.approve(db, 9999, "office-1")

    def test_invalid_order_id(self, db, approvals):
        with pytest.raises(ValidationError):
            approvals.approve(db, 0, "office-1")

    def test_sets_po_number_while_approving(self, db, approvals):
        order = _pending_order(db)

        approvals.approve(db, order.id, "office-1", po_number="  PO-55 ")

        db.expire_all()
        assert db.get(Order, order.id).po_number == "PO-55"

    def test_po_number_too_long(self, db, approvals):
        order = _pending_order(db)

        with pytest.raises(ValidationError):
            approvals.approve(db, order.id, "office-1", po_number="X" * 101)

        db.expire_all()
        assert db.get(Order, order.id).status == "pending"

    def test_order_without_production_items(self, db, approvals):
        order = _pending_order(db, production=0, non_production=2)

        result = approvals.approve(db, order.id, "office-1")

        assert result.success is True
        assert result.print_queue_items_added == 0


@pytest.mark.unit
class TestApprovePOPolicy:

    def test_duplicate_po_warns_by_default(self, db, approvals):
        customer = create_test_customer(db)
        create_test_order(db, customer=customer, po_number="PO-1", order_number="SO-OLD")
        order = _pending_order(db, customer=customer, po_number="PO-1")

        result = approvals.approve(db, order.id, "office-1")

        assert result.success is True
        assert result.warnings == [
            'Warning: PO # "PO-1" is already used in Order #SO-OLD. Do you want to proceed?'
        ]

    def test_duplicate_po_blocks_in_strict_mode(self, db, approvals, monkeypatch):
        monkeypatch.setattr(settings, "PO_DUPLICATE_POLICY", "block")
        customer = create_test_customer(db)
        create_test_order(db, customer=customer, po_number="PO-1")
        order = _pending_order(db, customer=customer, po_number="PO-1")

        with pytest.raises(DuplicatePOError) as exc_info:
            approvals.approve(db, order.id, "office-1")

        assert exc_info.value.status_code == 409
        db.expire_all()
        assert db.get(Order, order.id).status == "pending"
        assert db.query(PrintQueueEntry).count() == 0

    def test_po_validation_outage_warns_and_continues(self, db):
        class DownValidator(POValidationService):
            def check_duplicate(self, *args, **kwargs):
                raise TransientError("Database unavailable during PO validation")

        approvals = OrderApprovalService(
            print_queue=PrintQueueService(capacity=4),
            po_validator=DownValidator(),
        )
        order = _pending_order(db, po_number="PO-1")

        result = approvals.approve(db, order.id, "office-1")

        assert result.success is True
        assert result.warnings == [PO_VALIDATION_UNAVAILABLE]


@pytest.mark.unit
class TestQueueFailure:

    def test_queue_failure_still_approves(self, db):
        class BrokenQueue(PrintQueueService):
            def add_to_queue(self, *args, **kwargs):
                raise TransientError("Database unavailable during add to print queue")

        approvals = OrderApprovalService(print_queue=BrokenQueue())
        order = _pending_order(db)

        result = approvals.approve(db, order.id, "office-1")

        assert result.success is True
        assert result.print_queue_items_added == 0
        assert result.queue_error["error"] == "TRANSIENT_ERROR"
        assert result.queue_error["retryable"] is True
        db.expire_all()
        assert db.get(Order, order.id).status == "approved"
        assert "queue error" in OrderApprovalService.approval_summary(result)


@pytest.mark.unit
class TestResyncQueue:

    def test_resync_requeues_without_touching_approved_at(self, db, approvals):
        order = _pending_order(db)
        approvals.approve(db, order.id, "office-1")
        db.query(PrintQueueEntry).delete()
        db.commit()

        later = OrderApprovalService(
            print_queue=PrintQueueService(capacity=4),
            clock=lambda: APPROVED_AT + timedelta(days=1),
        )
        result = later.resync_queue(db, order.id, "office-2")

        assert result.print_queue_items_added == 3
        assert result.approved_at == APPROVED_AT
        assert db.query(AuditLog).filter(AuditLog.action == "order.print_queue_resynced").count() == 1

    def test_reapproval_after_reopen_keeps_first_approved_at(self, db, approvals):
        # Setup
        order = _pending_order(db)
        approvals.approve(db, order.id, "office-1")
        order = db.get(Order, order.id)
        order.status = "pending"
        db.commit()

        # Execute
        later = OrderApprovalService(
            print_queue=PrintQueueService(capacity=4),
            clock=lambda: APPROVED_AT + timedelta(days=2),
        )
        result = later.approve(db, order.id, "office-2")

        # Verify
        assert result.status == "approved"
        assert result.approved_at == APPROVED_AT
        assert db.get(Order, order.id).approved_at == APPROVED_AT
        assert db.query(PrintQueueEntry).count() == 3

    def test_resync_is_idempotent(self, db, approvals):
        order = _pending_order(db)
        approvals.approve(db, order.id, "office-1")

        result = approvals.resync_queue(db, order.id, "office-1")

        assert result.print_queue_items_added == 0
        assert db.query(PrintQueueEntry).count() == 3

    def test_resync_requires_approved_order(self, db, approvals):
        order = _pending_order(db)

        with pytest.raises(InvalidTransitionError):
            approvals.resync_queue(db, order.id, "office-1")


@pytest.mark.unit
class TestHelpers:

    def test_should_trigger_approval_workflow(self):
        assert OrderApprovalService.should_trigger_approval_workflow("pending", "approved") is True
        assert OrderApprovalService.should_trigger_approval_workflow("approved", "approved") is False
        assert OrderApprovalService.should_trigger_approval_workflow("pending", "cancelled") is False

    def test_validate_order_po_blank(self, db, approvals):
        result = approvals.validate_order_po(db, "", 1)

        assert result.is_duplicate is False
