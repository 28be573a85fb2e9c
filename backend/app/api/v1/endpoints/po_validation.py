"""
PO Validation Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.deps import get_db, require_queue_role
from app.core.security import Actor
from app.schemas.po_validation import POCheckRequest, POCheckResponse
from app.services.po_validation import po_validation_service

router = APIRouter(prefix="/validation", tags=["Validation"])


@router.post("/check-po-duplicate", response_model=POCheckResponse)
def check_po_duplicate(
    request: POCheckRequest,
    actor: Actor = Depends(require_queue_role),
    db: Session = Depends(get_db),
):
    """
    Check whether a PO number is already used by the customer.

    A duplicate is a normal 200 response with ``is_duplicate`` set; only
    bad input (400) and database failures (503/500) are errors.
    """
    result = po_validation_service.check_duplicate(
        db,
        request.customer_id,
        request.po_number,
        request.level,
        exclude_order_id=request.exclude_order_id,
        exclude_line_item_id=request.exclude_line_item_id,
    )
    return POCheckResponse.model_validate(result)
