"""
Order Approval Endpoints

Approving an order queues its production lines for label printing.
Duplicate PO numbers are reported as warnings unless PO_DUPLICATE_POLICY=block.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.deps import get_db, require_queue_role
from app.core.security import Actor
from app.schemas.order_approval import ApprovalResponse, ApproveOrderRequest
from app.schemas.po_validation import (
    OrderByPOResponse,
    OrdersByPOResponse,
    POCheckResponse,
    ValidateOrderPORequest,
)
from app.schemas.print_queue import RejectedItemResponse
from app.services.order_approval import ApprovalResult, OrderApprovalService, order_approval_service
from app.services.po_validation import po_validation_service

router = APIRouter(prefix="/orders", tags=["Orders"])


def _approval_response(result: ApprovalResult) -> ApprovalResponse:
    return ApprovalResponse(
        success=result.success,
        order_id=result.order_id,
        status=result.status,
        approved_at=result.approved_at,
        print_queue_items_added=result.print_queue_items_added,
        warnings=result.warnings,
        rejected_items=[RejectedItemResponse.model_validate(r) for r in result.rejected_items],
        queue_error=result.queue_error,
        summary=OrderApprovalService.approval_summary(result),
    )


@router.post("/{order_id}/approve", response_model=ApprovalResponse)
def approve_order(
    order_id: int,
    request: Optional[ApproveOrderRequest] = None,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """
    Approve a pending order.

    Returns 400 INVALID_TRANSITION for orders that are not pending (use
    resync-print-queue for approved orders). A failure to queue labels does
    not fail the approval; it is reported in ``queue_error``.
    """
    po_number = request.po_number if request else None
    result = order_approval_service.approve(db, order_id, actor.id, po_number=po_number)
    return _approval_response(result)


@router.post("/{order_id}/resync-print-queue", response_model=ApprovalResponse)
def resync_print_queue(
    order_id: int,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """Re-queue the production lines of an approved order."""
    result = order_approval_service.resync_queue(db, order_id, actor.id)
    return _approval_response(result)


@router.post("/validate-po", response_model=POCheckResponse)
def validate_order_po(
    request: ValidateOrderPORequest,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """Order-level duplicate PO check. Never blocks on database trouble."""
    result = order_approval_service.validate_order_po(
        db, request.po_number, request.customer_id, exclude_order_id=request.exclude_order_id
    )
    return POCheckResponse.model_validate(result)


@router.get("/by-po/{po_number}/{customer_id}", response_model=OrdersByPOResponse)
def get_orders_by_po(
    po_number: str,
    customer_id: int,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    orders = po_validation_service.find_orders_by_po(db, po_number, customer_id)
    return OrdersByPOResponse(
        po_number=po_number.strip(),
        customer_id=customer_id,
        orders=[OrderByPOResponse.model_validate(order) for order in orders],
    )
