"""
PO Validation Schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.services.po_validation import POLevel


class POCheckRequest(BaseModel):
    """Duplicate PO check, scoped to one customer."""
    customer_id: int
    po_number: Optional[str] = None
    level: POLevel = POLevel.ORDER
    exclude_order_id: Optional[int] = None
    exclude_line_item_id: Optional[int] = None


class ValidateOrderPORequest(BaseModel):
    customer_id: int
    po_number: Optional[str] = None
    exclude_order_id: Optional[int] = None


class POConflictResponse(BaseModel):
    order_id: int
    order_number: str
    order_status: str
    level: str
    line_item_id: Optional[int] = None
    product_name: Optional[str] = None

    model_config = {"from_attributes": True}


class POCheckResponse(BaseModel):
    is_duplicate: bool
    conflicting_references: List[POConflictResponse] = []
    warning_message: Optional[str] = None

    model_config = {"from_attributes": True}


class OrderByPOResponse(BaseModel):
    id: int
    order_number: str
    customer_id: int
    po_number: Optional[str] = None
    status: str
    approved_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class OrdersByPOResponse(BaseModel):
    po_number: str
    customer_id: int
    orders: List[OrderByPOResponse] = Field(default_factory=list)
