"""
Common API Response Schemas

Provides standardized error responses and pagination models for consistent API behavior.
"""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - VALIDATION_ERROR: Bad input, e.g. empty id list (400)
        - INVALID_STATE / INVALID_TRANSITION: Operation not allowed now (400)
        - NOT_FOUND: Resource missing, or queue entry already printed (404)
        - CONFLICT / DUPLICATE_PO: Resource conflict (409)
        - DATABASE_ERROR: Database operation failed (500)
        - TRANSIENT_ERROR: Database temporarily unavailable (503)

    ``retryable`` tells the client whether repeating the same request may
    succeed; the print confirmation dialog stays open only when it is true.
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(False, description="Whether the same request may be retried")
    suggestions: List[str] = Field(default_factory=list, description="Operator-facing hints")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context for debugging"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred (UTC)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "NOT_FOUND",
                "message": "Print queue entries not found or already printed: [12]",
                "retryable": False,
                "suggestions": ["Refresh and try again", "Verify the item still exists"],
                "details": {"resource": "Print queue entry", "missing_ids": [12]},
                "timestamp": "2025-12-23T10:30:00Z"
            }
        }
    }


# ============================================================================
# Pagination Models
# ============================================================================

class PaginationParams(BaseModel):
    """Offset-based pagination parameters for list endpoints."""
    offset: int = Field(
        default=0,
        ge=0,
        description="Number of records to skip (for pagination)"
    )
    limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of records to return (1-500)"
    )


class PaginationMeta(BaseModel):
    """Pagination metadata included in list responses."""
    total: int = Field(..., description="Total number of records matching the query")
    offset: int = Field(..., description="Current offset (number of records skipped)")
    limit: int = Field(..., description="Maximum records per page")
    returned: int = Field(..., description="Number of records in this response")


T = TypeVar('T')


class ListResponse(BaseModel, Generic[T]):
    """List response wrapper with pagination."""
    items: List[T]
    pagination: PaginationMeta
