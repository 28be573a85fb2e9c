"""
Print Queue Maintenance Endpoints (admin)

Health, statistics and cleanup for the print queue. The same operations run
from cron via scripts/run_print_queue_maintenance.py.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.deps import get_db, require_maintenance_role
from app.core.security import Actor
from app.logging_config import get_logger
from app.schemas.maintenance import (
    CleanupRequest,
    CleanupResponse,
    CleanupStatisticsResponse,
    HealthReportResponse,
)
from app.services.queue_maintenance import queue_maintenance_service

logger = get_logger(__name__)

router = APIRouter(prefix="/print-queue", tags=["Admin - Print Queue"])


@router.get("/health", response_model=HealthReportResponse)
def print_queue_health(
    actor: Actor = Depends(require_maintenance_role),
    db: Session = Depends(get_db),
):
    report = queue_maintenance_service.health_check(db)
    optimization = []
    if report.statistics is not None:
        optimization = queue_maintenance_service.optimize_performance(db, report.statistics)
    return HealthReportResponse(
        status=report.status,
        issues=report.issues,
        recommendations=report.recommendations,
        statistics=(
            CleanupStatisticsResponse.model_validate(report.statistics)
            if report.statistics else None
        ),
        optimization=optimization,
        checked_at=datetime.utcnow(),
    )


@router.get("/statistics", response_model=CleanupStatisticsResponse)
def print_queue_statistics(
    actor: Actor = Depends(require_maintenance_role),
    db: Session = Depends(get_db),
):
    return CleanupStatisticsResponse.model_validate(queue_maintenance_service.get_statistics(db))


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_print_queue(
    request: CleanupRequest,
    actor: Actor = Depends(require_maintenance_role),
    db: Session = Depends(get_db),
):
    """Remove old printed and orphaned entries. Use dry_run to preview."""
    if request.emergency:
        result = queue_maintenance_service.emergency_cleanup(db, actor_id=actor.id)
    else:
        result = queue_maintenance_service.perform_cleanup(
            db,
            printed_retention_days=request.printed_retention_days,
            remove_orphaned=request.remove_orphaned,
            dry_run=request.dry_run,
            actor_id=actor.id,
        )
    return CleanupResponse.model_validate(result)
