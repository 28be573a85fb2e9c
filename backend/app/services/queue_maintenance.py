"""
Print Queue Maintenance Service

Periodic housekeeping for the print queue, run from cron via
scripts/run_print_queue_maintenance.py or from the admin endpoints:

- remove printed entries older than the retention period
- remove orphaned entries (their line item was deleted)
- report statistics, health and tuning recommendations

All thresholds come from settings (PRINT_QUEUE_*).
"""
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.exceptions import CoverOpsException, ValidationError, translate_db_error
from app.logging_config import get_logger
from app.models.print_queue import PrintQueueEntry
from app.services.audit_service import AuditService, audit_service
from app.services.print_queue import PrintQueueRepository, PrintQueueService, utcnow

logger = get_logger(__name__)

HEALTHY = "healthy"
WARNING = "warning"
CRITICAL = "critical"


@dataclass
class CleanupResult:
    removed_count: int
    old_printed_items: int
    orphaned_items: int
    execution_time_ms: int
    dry_run: bool
    retention_days: int


@dataclass
class CleanupStatistics:
    total_queue_items: int
    unprinted_items: int
    old_printed_items: int
    orphaned_items: int
    average_queue_age_hours: float
    oldest_unprinted_added_at: Optional[datetime] = None


@dataclass
class HealthReport:
    status: str
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    statistics: Optional[CleanupStatistics] = None


class QueueMaintenanceService:

    def __init__(
        self,
        repository: Optional[PrintQueueRepository] = None,
        audit: Optional[AuditService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository or PrintQueueRepository()
        self.audit = audit or audit_service
        self.clock = clock or utcnow

    # ========================================================================
    # CLEANUP
    # ========================================================================

    def perform_cleanup(
        self,
        db: Session,
        printed_retention_days: Optional[int] = None,
        remove_orphaned: bool = True,
        dry_run: bool = False,
        actor_id: str = "system",
    ) -> CleanupResult:
        """
        Delete old printed entries and orphans.

        A retention of 0 skips the printed-entry cleanup. With ``dry_run``
        nothing is deleted and the counts say what would have been.

        Raises:
            ValidationError: negative retention
            TransientError / DatabaseError: the cleanup failed (rolled back)
        """
        if printed_retention_days is None:
            printed_retention_days = settings.PRINT_QUEUE_RETENTION_DAYS
        if printed_retention_days < 0:
            raise ValidationError(
                "Retention days cannot be negative",
                field="printed_retention_days",
                value=printed_retention_days,
            )

        started = time.monotonic()
        logger.info(
            f"Starting print queue cleanup{' (DRY RUN)' if dry_run else ''}",
            extra={"retention_days": printed_retention_days, "remove_orphaned": remove_orphaned},
        )

        old_printed = 0
        orphaned = 0
        try:
            if printed_retention_days > 0:
                cutoff = self.clock() - timedelta(days=printed_retention_days)
                query = self.repository.old_printed_query(db, cutoff)
                if dry_run:
                    old_printed = query.count()
                else:
                    old_printed = query.delete(synchronize_session=False)

            if remove_orphaned:
                orphan_ids = [
                    entry_id for (entry_id,) in
                    self.repository.orphaned_query(db).with_entities(PrintQueueEntry.id).all()
                ]
                orphaned = len(orphan_ids)
                if orphan_ids and not dry_run:
                    self._delete_in_chunks(db, orphan_ids)

            if dry_run:
                db.rollback()
            else:
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Print queue cleanup failed: {e}")
            raise translate_db_error(e, "print queue cleanup")

        result = CleanupResult(
            removed_count=old_printed + orphaned,
            old_printed_items=old_printed,
            orphaned_items=orphaned,
            execution_time_ms=int((time.monotonic() - started) * 1000),
            dry_run=dry_run,
            retention_days=printed_retention_days,
        )
        verb = "Would remove" if dry_run else "Removed"
        logger.info(
            f"{verb} {old_printed} old printed and {orphaned} orphaned print queue entries "
            f"in {result.execution_time_ms}ms",
            extra={"removed_count": result.removed_count, "dry_run": dry_run},
        )

        if not dry_run and result.removed_count:
            self.audit.record(
                db,
                action="print_queue.cleanup",
                entity_name="print_queue",
                new_value={
                    "removed_count": result.removed_count,
                    "old_printed_items": old_printed,
                    "orphaned_items": orphaned,
                    "retention_days": printed_retention_days,
                },
                actor_id=actor_id,
            )
        return result

    def emergency_cleanup(self, db: Session, actor_id: str = "system") -> CleanupResult:
        """Cleanup with the short emergency retention period."""
        logger.warning("Performing emergency print queue cleanup")
        return self.perform_cleanup(
            db,
            printed_retention_days=settings.PRINT_QUEUE_EMERGENCY_RETENTION_DAYS,
            remove_orphaned=True,
            dry_run=False,
            actor_id=actor_id,
        )

    def _delete_in_chunks(self, db: Session, ids: List[int]) -> None:
        size = settings.PRINT_QUEUE_PAGE_SIZE
        for start in range(0, len(ids), size):
            chunk = ids[start:start + size]
            db.query(PrintQueueEntry).filter(PrintQueueEntry.id.in_(chunk)).delete(
                synchronize_session=False
            )

    # ========================================================================
    # DIAGNOSTICS
    # ========================================================================

    def get_statistics(self, db: Session) -> CleanupStatistics:
        try:
            status = PrintQueueService(repository=self.repository, clock=self.clock).get_queue_status(db)
        except SQLAlchemyError as e:
            raise translate_db_error(e, "print queue statistics")
        return CleanupStatistics(
            total_queue_items=status.total_items,
            unprinted_items=status.unprinted_items,
            old_printed_items=status.old_printed_items,
            orphaned_items=status.orphaned_items,
            average_queue_age_hours=round(status.average_queue_age_seconds / 3600, 1),
            oldest_unprinted_added_at=status.oldest_unprinted_added_at,
        )

    def health_check(self, db: Session) -> HealthReport:
        """
        Grade the queue healthy / warning / critical.

        A failure to gather statistics is itself reported as critical.
        """
        try:
            stats = self.get_statistics(db)
        except CoverOpsException as e:
            logger.error(f"Print queue health check failed: {e.message}")
            return HealthReport(
                status=CRITICAL,
                issues=["Health check failed"],
                recommendations=["Check system logs and database connectivity"],
            )

        status = HEALTHY
        issues: List[str] = []
        recommendations: List[str] = []

        if stats.total_queue_items > settings.PRINT_QUEUE_SIZE_CRITICAL:
            status = CRITICAL
            issues.append(f"Queue size is extremely large (>{settings.PRINT_QUEUE_SIZE_CRITICAL:,} items)")
            recommendations.append("Perform emergency cleanup immediately")
        elif stats.total_queue_items > settings.PRINT_QUEUE_SIZE_WARNING:
            status = WARNING
            issues.append(f"Queue size is large (>{settings.PRINT_QUEUE_SIZE_WARNING:,} items)")
            recommendations.append("Schedule cleanup soon")

        if stats.orphaned_items > settings.PRINT_QUEUE_ORPHAN_HEALTH_WARNING:
            status = CRITICAL if status == CRITICAL else WARNING
            issues.append(f"High number of orphaned items ({stats.orphaned_items})")
            recommendations.append("Run cleanup to remove orphaned items")

        if stats.average_queue_age_hours > settings.PRINT_QUEUE_AGE_WARNING_HOURS:
            status = CRITICAL if status == CRITICAL else WARNING
            issues.append("Items staying in queue for very long periods")
            recommendations.append("Review print workflow and consider process improvements")

        if status == HEALTHY:
            recommendations.append("Print queue is operating normally")

        return HealthReport(status=status, issues=issues, recommendations=recommendations, statistics=stats)

    def optimize_performance(self, db: Session, stats: Optional[CleanupStatistics] = None) -> List[str]:
        """Tuning recommendations based on current (or supplied) statistics."""
        if stats is None:
            stats = self.get_statistics(db)
        recommendations = []

        if stats.total_queue_items > settings.PRINT_QUEUE_LARGE_QUEUE:
            recommendations.append(
                "Large queue detected. Consider more frequent cleanup or shorter retention period."
            )
        if stats.orphaned_items > settings.PRINT_QUEUE_ORPHAN_WARNING:
            recommendations.append(
                f"Found {stats.orphaned_items} orphaned items. Run cleanup to remove them."
            )
        if stats.average_queue_age_hours > settings.PRINT_QUEUE_SLOW_AGE_HOURS:
            recommendations.append(
                "Items staying in queue for long periods. Review print workflow efficiency."
            )
        if stats.old_printed_items > settings.PRINT_QUEUE_OLD_PRINTED_WARNING:
            recommendations.append(
                f"{stats.old_printed_items} old printed items can be cleaned up to improve performance."
            )
        return recommendations


# Singleton instance
queue_maintenance_service = QueueMaintenanceService()
