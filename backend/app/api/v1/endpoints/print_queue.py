"""
Print Queue Endpoints

Shipping label queue: list, next batch, mark printed, manual add/remove.
Available to QUEUE_ROLES (Super Admin, Admin, Office Employee).
"""
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.deps import get_db, get_pagination_params, require_queue_role
from app.core.security import Actor
from app.logging_config import get_logger
from app.schemas.common import ListResponse, PaginationMeta, PaginationParams
from app.schemas.print_queue import (
    AddToQueueRequest,
    AddToQueueResponse,
    BatchClassificationResponse,
    BatchValidationResponse,
    MarkPrintedResponse,
    NextBatchResponse,
    PrintQueueEntryResponse,
    QueueEntryIdsRequest,
    QueueStatusResponse,
    RejectedItemResponse,
    RemoveFromQueueResponse,
    WarningMessagesResponse,
)
from app.services.print_queue import print_queue_service
from app.services.print_warnings import warning_messages

logger = get_logger(__name__)

router = APIRouter(prefix="/print-queue", tags=["Print Queue"])


@router.get("", response_model=ListResponse[PrintQueueEntryResponse])
def list_print_queue(
    pagination: Annotated[PaginationParams, Depends(get_pagination_params)],
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """Unprinted entries, oldest first."""
    items = print_queue_service.get_queue(db, limit=pagination.limit, offset=pagination.offset)
    total = print_queue_service.get_queue_count(db)
    return ListResponse[PrintQueueEntryResponse](
        items=[PrintQueueEntryResponse.model_validate(entry) for entry in items],
        pagination=PaginationMeta(
            total=total,
            offset=pagination.offset,
            limit=pagination.limit,
            returned=len(items),
        ),
    )


@router.get("/status", response_model=QueueStatusResponse)
def get_queue_status(
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    status = print_queue_service.get_queue_status(db)
    return QueueStatusResponse.model_validate(status)


@router.get("/next-batch", response_model=NextBatchResponse)
def get_next_batch(
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """
    Oldest unprinted entries, at most one sheet.

    For a partial sheet the response carries the texts for both
    confirmation dialogs.
    """
    batch = print_queue_service.get_next_batch(db)
    messages = warning_messages(len(batch.items), batch.classification.capacity)
    return NextBatchResponse(
        items=[PrintQueueEntryResponse.model_validate(entry) for entry in batch.items],
        can_print_without_warning=batch.can_print_without_warning,
        requires_warning=batch.requires_warning,
        warning_message=batch.warning_message,
        classification=BatchClassificationResponse.model_validate(batch.classification),
        warnings=WarningMessagesResponse.model_validate(messages) if messages else None,
    )


@router.get("/validate-batch", response_model=BatchValidationResponse)
def validate_batch(
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    validation = print_queue_service.validate_batch(db)
    return BatchValidationResponse(
        classification=BatchClassificationResponse.model_validate(validation.classification),
        batch_size=validation.batch_size,
        standard_batch_size=validation.standard_batch_size,
        recommendations=validation.recommendations,
        queue_status=QueueStatusResponse.model_validate(validation.queue_status),
        validated_at=datetime.utcnow(),
        validated_by=actor.id,
    )


@router.post("/add", response_model=AddToQueueResponse)
def add_to_queue(
    request: AddToQueueRequest,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """
    Queue order lines manually.

    Lines that are already queued are left alone; lines that cannot be
    queued come back in ``rejected`` with the reason.
    """
    result = print_queue_service.add_to_queue(db, request.line_item_ids, actor.id)
    return AddToQueueResponse(
        added=[PrintQueueEntryResponse.model_validate(entry) for entry in result.added],
        already_queued=result.already_queued,
        rejected=[RejectedItemResponse.model_validate(r) for r in result.rejected],
        added_count=len(result.added),
    )


@router.post("/mark-printed", response_model=MarkPrintedResponse)
def mark_printed(
    request: QueueEntryIdsRequest,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """
    Mark a batch printed, all or nothing.

    404 if any entry is missing or was already printed by someone else.
    """
    count = print_queue_service.mark_batch_printed(db, request.queue_entry_ids, actor.id)
    return MarkPrintedResponse(marked_count=count)


@router.delete("/remove", response_model=RemoveFromQueueResponse)
def remove_from_queue(
    request: QueueEntryIdsRequest,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    removed = print_queue_service.remove_from_queue(db, request.queue_entry_ids)
    logger.info(f"{actor.id} removed {removed} print queue entries")
    return RemoveFromQueueResponse(removed_count=removed)
