"""
Integration test: approve orders, take the next batch through the
confirmation flow, mark it printed.
"""
import pytest

from app.exceptions import NotFoundError
from app.models.print_queue import PrintQueueEntry
from app.services.order_approval import OrderApprovalService
from app.services.print_queue import PrintQueueService
from app.services.print_warnings import PrintWarningFlow, WarningStage
from tests.factories import create_test_order, create_test_order_item


@pytest.fixture
def queue():
    return PrintQueueService(capacity=4)


def _approve_order_with_items(db, approvals, count):
    order = create_test_order(db)
    for _ in range(count):
        create_test_order_item(db, order=order)
    db.commit()
    return approvals.approve(db, order.id, "office-1")


@pytest.mark.integration
class TestPrintWorkflow:

    def test_partial_batch_printed_after_two_confirmations(self, db, queue):
        approvals = OrderApprovalService(print_queue=queue)
        _approve_order_with_items(db, approvals, 3)

        batch = queue.get_next_batch(db)
        ids = [entry.id for entry in batch.items]
        flow = PrintWarningFlow(lambda: queue.mark_batch_printed(db, ids, "office-1"), capacity=4)

        flow.start(len(batch.items))
        assert flow.stage == WarningStage.FIRST_WARNING
        flow.confirm_first()
        assert flow.confirm_second() == 3

        assert queue.get_queue_count(db) == 0
        assert queue.get_next_batch(db).items == []

    def test_full_sheet_then_remainder(self, db, queue):
        approvals = OrderApprovalService(print_queue=queue)
        _approve_order_with_items(db, approvals, 3)
        _approve_order_with_items(db, approvals, 3)

        first = queue.get_next_batch(db)
        assert first.can_print_without_warning is True
        first_ids = [entry.id for entry in first.items]
        flow = PrintWarningFlow(lambda: queue.mark_batch_printed(db, first_ids, "office-1"), capacity=4)
        assert flow.start(4) == 4

        second = queue.get_next_batch(db)
        assert len(second.items) == 2
        assert second.requires_warning is True
        assert not set(first_ids) & {entry.id for entry in second.items}

    def test_stale_batch_cannot_be_printed_twice(self, db, queue):
        approvals = OrderApprovalService(print_queue=queue)
        _approve_order_with_items(db, approvals, 4)
        ids = [entry.id for entry in queue.get_next_batch(db).items]

        queue.mark_batch_printed(db, ids, "office-1")
        flow = PrintWarningFlow(lambda: queue.mark_batch_printed(db, ids, "office-2"), capacity=4)

        with pytest.raises(NotFoundError):
            flow.start(4)
        assert flow.stage == WarningStage.IDLE
        assert (
            db.query(PrintQueueEntry).filter(PrintQueueEntry.printed_by == "office-1").count() == 4
        )
