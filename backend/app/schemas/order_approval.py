"""
Order Approval Schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.print_queue import RejectedItemResponse


class ApproveOrderRequest(BaseModel):
    po_number: Optional[str] = Field(None, description="PO number to set while approving")


class ApprovalResponse(BaseModel):
    success: bool
    order_id: int
    status: str
    approved_at: Optional[datetime] = None
    print_queue_items_added: int
    warnings: List[str] = []
    rejected_items: List[RejectedItemResponse] = []
    # Set when queue population failed; the approval itself still committed
    queue_error: Optional[Dict[str, Any]] = None
    summary: str

    model_config = {"from_attributes": True}
