"""
Batch Policy

Classifies a candidate print batch against the sheet capacity (4 labels per
sheet). Used by the print queue service and by the print warning flow.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from app.core.settings import settings
from app.exceptions import ValidationError
from app.logging_config import get_logger

logger = get_logger(__name__)

EMPTY_QUEUE_MESSAGE = (
    "No items available for printing. Please approve orders to add items to the queue."
)


@dataclass
class BatchClassification:
    """Outcome of classifying a batch size."""
    candidate_size: int
    capacity: int
    effective_size: int
    is_valid: bool
    can_print_without_warning: bool
    requires_warning: bool
    wasted_labels: int = 0
    waste_percentage: int = 0
    warning_message: Optional[str] = None
    recommendations: List[str] = field(default_factory=list)


def waste_for(size: int, capacity: int) -> tuple:
    """Return (wasted_labels, waste_percentage) for a partial sheet."""
    if size <= 0 or size >= capacity:
        return 0, 0
    wasted = capacity - size
    # round half up, matching the percentage shown to operators
    percentage = int(wasted * 100 / capacity + 0.5)
    return wasted, percentage


def classify_batch(candidate_size: int, capacity: Optional[int] = None) -> BatchClassification:
    """
    Classify a candidate batch size.

    Args:
        candidate_size: Number of unprinted entries in the batch
        capacity: Labels per sheet, defaults to PRINT_QUEUE_BATCH_SIZE

    Returns:
        BatchClassification

    Raises:
        ValidationError: candidate_size is negative or capacity is not positive
    """
    capacity = settings.PRINT_QUEUE_BATCH_SIZE if capacity is None else capacity
    if capacity < 1:
        raise ValidationError("Batch capacity must be at least 1", field="capacity", value=capacity)
    if candidate_size < 0:
        raise ValidationError(
            "Batch size cannot be negative", field="candidate_size", value=candidate_size
        )

    if candidate_size == 0:
        return BatchClassification(
            candidate_size=0,
            capacity=capacity,
            effective_size=0,
            is_valid=False,
            can_print_without_warning=False,
            requires_warning=True,
            warning_message=EMPTY_QUEUE_MESSAGE,
            recommendations=["Approve orders to populate the print queue"],
        )

    if candidate_size > capacity:
        # The queue must never hand out more than one sheet
        logger.error(
            f"Batch of {candidate_size} exceeds sheet capacity {capacity}; clipping",
            extra={"candidate_size": candidate_size, "capacity": capacity},
        )
        return BatchClassification(
            candidate_size=candidate_size,
            capacity=capacity,
            effective_size=capacity,
            is_valid=False,
            can_print_without_warning=False,
            requires_warning=True,
            warning_message=(
                f"Batch contained {candidate_size} items but a sheet holds {capacity}. "
                "Refresh the queue before printing."
            ),
            recommendations=["Refresh the print queue", "Contact support if the problem persists"],
        )

    if candidate_size == capacity:
        return BatchClassification(
            candidate_size=candidate_size,
            capacity=capacity,
            effective_size=capacity,
            is_valid=True,
            can_print_without_warning=True,
            requires_warning=False,
        )

    wasted, percentage = waste_for(candidate_size, capacity)
    plural = "item" if candidate_size == 1 else "items"
    return BatchClassification(
        candidate_size=candidate_size,
        capacity=capacity,
        effective_size=candidate_size,
        is_valid=True,
        can_print_without_warning=False,
        requires_warning=True,
        wasted_labels=wasted,
        waste_percentage=percentage,
        warning_message=(
            f"Only {candidate_size} {plural} available. Standard batch size is {capacity} items. "
            "Do you want to proceed with a smaller batch?"
        ),
        recommendations=[
            f"Wait for {wasted} more item(s) to fill the sheet",
            "Approve pending orders to add more items",
        ],
    )
