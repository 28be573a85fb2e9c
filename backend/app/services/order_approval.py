"""
Order Approval Service

Owns the pending -> approved transition. Approval:

1. checks the transition is legal (an approved order is NOT re-approved;
   use resync_queue to repair its print queue entries)
2. runs the duplicate PO check (warn by default, block when
   PO_DUPLICATE_POLICY=block)
3. sets status and approved_at
4. queues the order's production lines for label printing
5. commits, then writes an audit record

Queue population runs in a savepoint: if it fails the approval still
commits and the error comes back in ``queue_error`` so the caller can retry
queue population on its own.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.settings import settings
from app.core.status_config import (
    OrderStatus,
    get_allowed_order_transitions,
    is_valid_order_transition,
)
from app.exceptions import (
    CoverOpsException,
    DatabaseError,
    DuplicatePOError,
    InvalidTransitionError,
    NotFoundError,
    TransientError,
    ValidationError,
    translate_db_error,
)
from app.logging_config import get_logger
from app.models.order import Order
from app.services.audit_service import AuditService, audit_service
from app.services.po_validation import (
    POLevel,
    POValidationResult,
    POValidationService,
    normalize_po_number,
    po_validation_service,
)
from app.services.print_queue import (
    PrintQueueService,
    RejectedItem,
    print_queue_service,
    utcnow,
)

logger = get_logger(__name__)

PO_VALIDATION_UNAVAILABLE = "PO validation temporarily unavailable. Please verify manually."


@dataclass
class ApprovalResult:
    success: bool
    order_id: int
    status: str
    approved_at: Optional[datetime] = None
    print_queue_items_added: int = 0
    warnings: List[str] = field(default_factory=list)
    rejected_items: List[RejectedItem] = field(default_factory=list)
    queue_error: Optional[dict] = None


class OrderApprovalService:
    """Coordinates order approval with PO validation and the print queue."""

    def __init__(
        self,
        print_queue: Optional[PrintQueueService] = None,
        po_validator: Optional[POValidationService] = None,
        audit: Optional[AuditService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.print_queue = print_queue or print_queue_service
        self.po_validator = po_validator or po_validation_service
        self.audit = audit or audit_service
        self.clock = clock or utcnow

    # ========================================================================
    # APPROVAL
    # ========================================================================

    def approve(
        self,
        db: Session,
        order_id: int,
        actor_id: str,
        po_number: Optional[str] = None,
    ) -> ApprovalResult:
        """
        Approve a pending order and queue its production lines.

        Args:
            db: Database session
            order_id: Order to approve
            actor_id: Who is approving
            po_number: Optional PO number to set on the order while approving

        Raises:
            NotFoundError: no such order
            InvalidTransitionError: order cannot move to approved
            ValidationError: bad PO number
            DuplicatePOError: duplicate PO while PO_DUPLICATE_POLICY=block
            TransientError: the approval could not be committed
        """
        order = self._load_order(db, order_id)
        approved = OrderStatus.APPROVED.value

        if not is_valid_order_transition(order.status, approved):
            current = order.status
            db.rollback()
            raise InvalidTransitionError(
                current,
                approved,
                allowed_states=get_allowed_order_transitions(current),
                details={"order_id": order_id},
            )

        before = order.snapshot()
        new_po = normalize_po_number(po_number)
        if new_po is not None and len(new_po) > settings.PO_NUMBER_MAX_LENGTH:
            db.rollback()
            raise ValidationError(
                f"PO number must be {settings.PO_NUMBER_MAX_LENGTH} characters or less",
                field="po_number",
            )
        effective_po = new_po if new_po is not None else order.po_number

        warnings = self._check_po(db, order, effective_po)

        if new_po is not None:
            order.po_number = new_po
        order.status = approved
        if order.approved_at is None:
            order.approved_at = self.clock()

        added, rejected, queue_error = self._populate_queue(db, order, actor_id)

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to commit approval of order {order_id}: {e}")
            raise TransientError(
                "Order approval could not be saved. Please try again.",
                operation="approve order",
                details={"order_id": order_id, "cause": e.__class__.__name__},
            )

        logger.info(
            f"Order {order.order_number}: {before['status']} → {approved} by {actor_id}, "
            f"{added} item(s) queued",
            extra={"order_id": order.id, "actor_id": actor_id, "warnings": len(warnings)},
        )
        self.audit.record(
            db,
            action="order.approved",
            entity_name="order",
            entity_id=order.id,
            old_value=before,
            new_value=order.snapshot(),
            actor_id=actor_id,
        )

        return ApprovalResult(
            success=True,
            order_id=order.id,
            status=order.status,
            approved_at=order.approved_at,
            print_queue_items_added=added,
            warnings=warnings,
            rejected_items=rejected,
            queue_error=queue_error,
        )

    def resync_queue(self, db: Session, order_id: int, actor_id: str) -> ApprovalResult:
        """
        Re-queue the production lines of an already approved order.

        approved_at is left untouched.

        Raises:
            NotFoundError: no such order
            InvalidTransitionError: order is not approved
            TransientError: the changes could not be committed
        """
        order = self._load_order(db, order_id)
        approved = OrderStatus.APPROVED.value
        if order.status != approved:
            current = order.status
            db.rollback()
            raise InvalidTransitionError(
                current,
                approved,
                allowed_states=[approved],
                details={"order_id": order_id, "operation": "resync_print_queue"},
            )

        added, rejected, queue_error = self._populate_queue(db, order, actor_id)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise TransientError(
                "Print queue re-sync could not be saved. Please try again.",
                operation="resync print queue",
                details={"order_id": order_id, "cause": e.__class__.__name__},
            )

        logger.info(f"Order {order.order_number}: print queue re-synced by {actor_id}, {added} item(s) queued")
        if added:
            self.audit.record(
                db,
                action="order.print_queue_resynced",
                entity_name="order",
                entity_id=order.id,
                new_value={"print_queue_items_added": added},
                actor_id=actor_id,
            )

        return ApprovalResult(
            success=True,
            order_id=order.id,
            status=order.status,
            approved_at=order.approved_at,
            print_queue_items_added=added,
            rejected_items=rejected,
            queue_error=queue_error,
        )

    # ========================================================================
    # PO HELPERS
    # ========================================================================

    def validate_order_po(
        self,
        db: Session,
        po_number: Optional[str],
        customer_id: int,
        exclude_order_id: Optional[int] = None,
    ) -> POValidationResult:
        """Order-level duplicate check that never fails on infrastructure errors."""
        if normalize_po_number(po_number) is None:
            return POValidationResult(is_duplicate=False)
        try:
            return self.po_validator.check_duplicate(
                db, customer_id, po_number, POLevel.ORDER, exclude_order_id=exclude_order_id
            )
        except (TransientError, DatabaseError) as e:
            logger.warning(f"PO validation unavailable for customer {customer_id}: {e}")
            return POValidationResult(is_duplicate=False, warning_message=PO_VALIDATION_UNAVAILABLE)

    @staticmethod
    def should_trigger_approval_workflow(old_status: str, new_status: str) -> bool:
        approved = OrderStatus.APPROVED.value
        return old_status != approved and new_status == approved

    @staticmethod
    def approval_summary(result: ApprovalResult) -> str:
        if not result.success:
            return f"Approval failed for order {result.order_id}"
        summary = f"Approval successful: {result.print_queue_items_added} items added to print queue"
        if result.warnings:
            summary += f", {len(result.warnings)} warnings"
        if result.queue_error:
            summary += f", queue error: {result.queue_error.get('message')}"
        return summary

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _load_order(self, db: Session, order_id: int) -> Order:
        if isinstance(order_id, bool) or not isinstance(order_id, int) or order_id <= 0:
            raise ValidationError("Invalid order ID", field="order_id", value=order_id)
        order = (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .with_for_update()
            .first()
        )
        if order is None:
            db.rollback()
            raise NotFoundError("Order", order_id)
        return order

    def _check_po(self, db: Session, order: Order, po_number: Optional[str]) -> List[str]:
        if not po_number:
            return []
        try:
            with db.begin_nested():
                check = self.po_validator.check_duplicate(
                    db, order.customer_id, po_number, POLevel.ORDER, exclude_order_id=order.id
                )
        except (TransientError, DatabaseError) as e:
            logger.warning(f"PO validation unavailable while approving order {order.id}: {e}")
            return [PO_VALIDATION_UNAVAILABLE]

        if not check.is_duplicate:
            return []
        if settings.blocks_duplicate_po:
            db.rollback()
            raise DuplicatePOError(
                po_number,
                conflicts=[c.to_dict() for c in check.conflicting_references],
                message=check.warning_message,
            )
        return [check.warning_message]

    def _populate_queue(
        self, db: Session, order: Order, actor_id: str
    ) -> Tuple[int, List[RejectedItem], Optional[dict]]:
        line_item_ids = [item.id for item in order.production_items]
        if not line_item_ids:
            return 0, [], None
        try:
            with db.begin_nested():
                result = self.print_queue.add_to_queue(db, line_item_ids, actor_id, commit=False)
        except CoverOpsException as e:
            logger.error(
                f"Print queue population failed for order {order.id}; approval continues: {e.message}",
                extra={"order_id": order.id, "retryable": e.retryable},
            )
            return 0, [], e.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Print queue population failed for order {order.id}; approval continues: {e}")
            return 0, [], translate_db_error(e, "add to print queue").to_dict()
        return len(result.added), result.rejected, None


# Singleton instance
order_approval_service = OrderApprovalService()
