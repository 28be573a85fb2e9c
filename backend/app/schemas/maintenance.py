"""
Print Queue Maintenance Schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CleanupRequest(BaseModel):
    printed_retention_days: Optional[int] = Field(
        None, ge=0, description="Defaults to PRINT_QUEUE_RETENTION_DAYS; 0 skips printed entries"
    )
    remove_orphaned: bool = True
    dry_run: bool = False
    emergency: bool = Field(False, description="Use the short emergency retention period")


class CleanupResponse(BaseModel):
    removed_count: int
    old_printed_items: int
    orphaned_items: int
    execution_time_ms: int
    dry_run: bool
    retention_days: int

    model_config = {"from_attributes": True}


class CleanupStatisticsResponse(BaseModel):
    total_queue_items: int
    unprinted_items: int
    old_printed_items: int
    orphaned_items: int
    average_queue_age_hours: float
    oldest_unprinted_added_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HealthReportResponse(BaseModel):
    status: str  # healthy, warning, critical
    issues: List[str]
    recommendations: List[str]
    statistics: Optional[CleanupStatisticsResponse] = None
    optimization: List[str] = []
    checked_at: datetime
