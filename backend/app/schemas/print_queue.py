"""
Print Queue Schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LineItemSummary(BaseModel):
    id: int
    order_id: int
    product_name: str
    item_status: str

    model_config = {"from_attributes": True}


class PrintQueueEntryResponse(BaseModel):
    id: int
    line_item_id: int
    added_at: datetime
    added_by: str
    is_printed: bool
    printed_at: Optional[datetime] = None
    printed_by: Optional[str] = None
    line_item: Optional[LineItemSummary] = None  # None for orphaned entries

    model_config = {"from_attributes": True}


class AddToQueueRequest(BaseModel):
    line_item_ids: List[int] = Field(..., description="Order line ids to queue")


class RejectedItemResponse(BaseModel):
    line_item_id: int
    reason: str  # not_found, not_production_item, order_inactive

    model_config = {"from_attributes": True}


class AddToQueueResponse(BaseModel):
    added: List[PrintQueueEntryResponse]
    already_queued: List[int]
    rejected: List[RejectedItemResponse]
    added_count: int


class QueueEntryIdsRequest(BaseModel):
    """Body for mark-printed and remove."""
    queue_entry_ids: List[int] = Field(..., description="Print queue entry ids")


class MarkPrintedResponse(BaseModel):
    success: bool = True
    marked_count: int


class RemoveFromQueueResponse(BaseModel):
    success: bool = True
    removed_count: int


class BatchClassificationResponse(BaseModel):
    candidate_size: int
    capacity: int
    effective_size: int
    is_valid: bool
    can_print_without_warning: bool
    requires_warning: bool
    wasted_labels: int
    waste_percentage: int
    warning_message: Optional[str] = None
    recommendations: List[str] = []

    model_config = {"from_attributes": True}


class WarningMessageResponse(BaseModel):
    title: str
    message: str
    confirm_text: str
    confirmation_phrase: Optional[str] = None

    model_config = {"from_attributes": True}


class WarningMessagesResponse(BaseModel):
    first: WarningMessageResponse
    second: WarningMessageResponse

    model_config = {"from_attributes": True}


class NextBatchResponse(BaseModel):
    items: List[PrintQueueEntryResponse]
    can_print_without_warning: bool
    requires_warning: bool
    warning_message: Optional[str] = None
    classification: BatchClassificationResponse
    # Texts for the two confirmation dialogs, present for partial sheets only
    warnings: Optional[WarningMessagesResponse] = None


class QueueStatusResponse(BaseModel):
    total_items: int
    unprinted_items: int
    printed_items: int
    old_printed_items: int
    orphaned_items: int
    average_queue_age_seconds: float
    oldest_unprinted_added_at: Optional[datetime] = None
    ready_to_print: int
    requires_warning: bool

    model_config = {"from_attributes": True}


class BatchValidationResponse(BaseModel):
    classification: BatchClassificationResponse
    batch_size: int
    standard_batch_size: int
    recommendations: List[str]
    queue_status: QueueStatusResponse
    validated_at: datetime
    validated_by: str
