"""
PO Duplicate Validation Service

Checks whether a customer's purchase order number is already used by another
order (order level) or by another order line (item level). Matching is exact
and case-sensitive on the trimmed PO number.

Detecting a duplicate is not an error: callers decide whether to warn or
block. Only bad input and database failures raise.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.exceptions import ValidationError, translate_db_error
from app.logging_config import get_logger
from app.models.order import Order, OrderItem

logger = get_logger(__name__)

# Item-level warnings name at most this many products
MAX_PRODUCTS_IN_WARNING = 3


class POLevel(str, Enum):
    ORDER = "order"
    ITEM = "item"


@dataclass
class POConflict:
    """An existing order or order line already carrying the PO number."""
    order_id: int
    order_number: str
    order_status: str
    level: str
    line_item_id: Optional[int] = None
    product_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "order_status": self.order_status,
            "level": self.level,
            "line_item_id": self.line_item_id,
            "product_name": self.product_name,
        }


@dataclass
class POValidationResult:
    is_duplicate: bool
    conflicting_references: List[POConflict] = field(default_factory=list)
    warning_message: Optional[str] = None


def normalize_po_number(po_number: Optional[str]) -> Optional[str]:
    """Trim whitespace; blank means "no PO"."""
    if po_number is None:
        return None
    po_number = po_number.strip()
    return po_number or None


class POValidationService:
    """Duplicate PO detection scoped to one customer."""

    def validate_input(self, customer_id, po_number: Optional[str], level) -> POLevel:
        """Raise ValidationError for malformed checks; return the parsed level."""
        if isinstance(customer_id, bool) or not isinstance(customer_id, int) or customer_id <= 0:
            raise ValidationError(
                "Customer ID is required for PO validation", field="customer_id", value=customer_id
            )
        try:
            parsed_level = POLevel(level)
        except ValueError:
            raise ValidationError(
                "Validation level must be 'order' or 'item'", field="level", value=level
            )
        if po_number is not None and len(po_number) > settings.PO_NUMBER_MAX_LENGTH:
            raise ValidationError(
                f"PO number must be {settings.PO_NUMBER_MAX_LENGTH} characters or less",
                field="po_number",
            )
        return parsed_level

    def check_duplicate(
        self,
        db: Session,
        customer_id: int,
        po_number: Optional[str],
        level="order",
        exclude_order_id: Optional[int] = None,
        exclude_line_item_id: Optional[int] = None,
    ) -> POValidationResult:
        """
        Look for other uses of ``po_number`` by the same customer.

        Returns every conflict, newest order first.

        Raises:
            ValidationError: bad customer id, unknown level, PO too long
            TransientError / DatabaseError: the lookup itself failed
        """
        po_number = normalize_po_number(po_number)
        parsed_level = self.validate_input(customer_id, po_number, level)
        if po_number is None:
            return POValidationResult(is_duplicate=False)

        try:
            if parsed_level == POLevel.ORDER:
                conflicts = self._order_conflicts(db, customer_id, po_number, exclude_order_id)
            else:
                conflicts = self._item_conflicts(db, customer_id, po_number, exclude_line_item_id)
        except SQLAlchemyError as e:
            logger.error(
                f"PO validation query failed for customer {customer_id}: {e}",
                extra={"customer_id": customer_id, "level": parsed_level.value},
            )
            raise translate_db_error(e, "PO validation")

        if not conflicts:
            return POValidationResult(is_duplicate=False)

        logger.info(
            f"PO {po_number!r} for customer {customer_id} already used {len(conflicts)} time(s) "
            f"at {parsed_level.value} level"
        )
        if parsed_level == POLevel.ORDER:
            message = self.order_duplicate_warning(po_number, conflicts)
        else:
            message = self.item_duplicate_warning(po_number, conflicts)
        return POValidationResult(
            is_duplicate=True,
            conflicting_references=conflicts,
            warning_message=message,
        )

    def find_orders_by_po(self, db: Session, po_number: Optional[str], customer_id: int) -> List[Order]:
        """All of a customer's orders carrying ``po_number``, newest first."""
        po_number = normalize_po_number(po_number)
        self.validate_input(customer_id, po_number, POLevel.ORDER)
        if po_number is None:
            return []
        try:
            return (
                db.query(Order)
                .filter(Order.customer_id == customer_id, Order.po_number == po_number)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise translate_db_error(e, "PO lookup")

    # ========================================================================
    # QUERIES
    # ========================================================================

    def _order_conflicts(
        self, db: Session, customer_id: int, po_number: str, exclude_order_id: Optional[int]
    ) -> List[POConflict]:
        query = db.query(Order).filter(
            Order.customer_id == customer_id,
            Order.po_number == po_number,
        )
        if exclude_order_id is not None:
            query = query.filter(Order.id != exclude_order_id)
        orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
        return [
            POConflict(
                order_id=order.id,
                order_number=order.order_number,
                order_status=order.status,
                level=POLevel.ORDER.value,
            )
            for order in orders
        ]

    def _item_conflicts(
        self, db: Session, customer_id: int, po_number: str, exclude_line_item_id: Optional[int]
    ) -> List[POConflict]:
        query = (
            db.query(OrderItem, Order)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                Order.customer_id == customer_id,
                OrderItem.po_number == po_number,
            )
        )
        if exclude_line_item_id is not None:
            query = query.filter(OrderItem.id != exclude_line_item_id)
        rows = query.order_by(Order.created_at.desc(), OrderItem.id.desc()).all()
        return [
            POConflict(
                order_id=order.id,
                order_number=order.order_number,
                order_status=order.status,
                level=POLevel.ITEM.value,
                line_item_id=item.id,
                product_name=item.product_name,
            )
            for item, order in rows
        ]

    # ========================================================================
    # WARNING TEXT
    # ========================================================================

    @staticmethod
    def order_duplicate_warning(po_number: str, conflicts: List[POConflict]) -> str:
        if len(conflicts) == 1:
            return (
                f'Warning: PO # "{po_number}" is already used in Order #{conflicts[0].order_number}. '
                "Do you want to proceed?"
            )
        numbers = ", ".join(c.order_number for c in conflicts)
        return (
            f'Warning: PO # "{po_number}" is already used in {len(conflicts)} orders ({numbers}). '
            "Do you want to proceed?"
        )

    @staticmethod
    def item_duplicate_warning(po_number: str, conflicts: List[POConflict]) -> str:
        if len(conflicts) == 1:
            conflict = conflicts[0]
            return (
                f'Warning: PO # "{po_number}" is already used for "{conflict.product_name or "Unknown Product"}" '
                f"in Order #{conflict.order_number}. Do you want to proceed?"
            )
        names = ", ".join(
            c.product_name or "Unknown Product" for c in conflicts[:MAX_PRODUCTS_IN_WARNING]
        )
        more = ""
        if len(conflicts) > MAX_PRODUCTS_IN_WARNING:
            more = f" and {len(conflicts) - MAX_PRODUCTS_IN_WARNING} more"
        return (
            f'Warning: PO # "{po_number}" is already used for {len(conflicts)} products ({names}{more}). '
            "Do you want to proceed?"
        )


# Singleton instance
po_validation_service = POValidationService()
