"""Status Configuration and Transition Rules

This module defines valid status values and allowed transitions for
Orders and Order Items. Order status transitions are validated to prevent
invalid state changes.
"""
from enum import Enum
from typing import Dict, List, Set


# =============================================================================
# Order Status
# =============================================================================

class OrderStatus(str, Enum):
    """Valid status values for Orders"""
    PENDING = "pending"
    APPROVED = "approved"
    IN_PRODUCTION = "in_production"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


# Allowed transitions: current_status -> set of allowed next statuses
ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    OrderStatus.PENDING.value: {
        OrderStatus.APPROVED.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.APPROVED.value: {
        OrderStatus.IN_PRODUCTION.value,
        OrderStatus.PENDING.value,  # Un-approve for corrections
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.IN_PRODUCTION.value: {
        OrderStatus.READY_TO_SHIP.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.READY_TO_SHIP.value: {
        OrderStatus.SHIPPED.value,
        OrderStatus.IN_PRODUCTION.value,  # Rework
    },
    OrderStatus.SHIPPED.value: {
        OrderStatus.COMPLETED.value,
    },
    OrderStatus.COMPLETED.value: {
        OrderStatus.ARCHIVED.value,
    },
    OrderStatus.CANCELLED.value: {
        OrderStatus.ARCHIVED.value,
    },
    OrderStatus.ARCHIVED.value: set(),  # Terminal state
}

# Orders in these statuses never feed the print queue
INACTIVE_ORDER_STATUSES: Set[str] = {
    OrderStatus.CANCELLED.value,
    OrderStatus.ARCHIVED.value,
}


def _status_value(status) -> str:
    # Accept enum members as well as raw column values
    return status.value if isinstance(status, Enum) else status


def get_allowed_order_transitions(current_status: str) -> List[str]:
    """Get list of allowed next statuses for an order"""
    return sorted(ORDER_TRANSITIONS.get(_status_value(current_status), set()))


def is_valid_order_transition(current_status: str, new_status: str) -> bool:
    """
    Check if an order status transition is valid.

    Unlike most status checks, approved -> approved is NOT treated as a
    no-op here: a second approval must go through the re-sync path.
    """
    allowed = ORDER_TRANSITIONS.get(_status_value(current_status), set())
    return _status_value(new_status) in allowed


def is_order_active(status: str) -> bool:
    return _status_value(status) not in INACTIVE_ORDER_STATUSES


# =============================================================================
# Order Item Status
# =============================================================================

class OrderItemStatus(str, Enum):
    """Production stage of a single order line"""
    NOT_STARTED_PRODUCTION = "not_started_production"
    CUTTING = "cutting"
    SEWING = "sewing"
    FOAM_CUTTING = "foam_cutting"
    PACKAGING = "packaging"
    READY = "ready"
