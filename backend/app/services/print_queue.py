"""
Print Queue Service

FIFO queue of order lines waiting for a shipping label. Labels come four to
a sheet, so the queue hands out at most one sheet's worth of entries at a
time and the caller confirms partial sheets (see print_warnings).

Guarantees:
- at most one unprinted entry per line item (unique line_item_id; a printed
  entry is reset on re-add instead of duplicated)
- batches come out oldest first (added_at, then id)
- mark_batch_printed is all-or-nothing, and of two overlapping calls only
  one can succeed

No in-process locks: the service may run as several processes, so every
guarantee rests on row locks, conditional updates and the unique constraint.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from sqlalchemy import extract, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.settings import settings
from app.core.status_config import is_order_active
from app.exceptions import NotFoundError, ValidationError, translate_db_error
from app.logging_config import get_logger
from app.models.order import Order, OrderItem
from app.models.print_queue import PrintQueueEntry
from app.services.batch_policy import BatchClassification, classify_batch

logger = get_logger(__name__)


# Rejection reasons reported by add_to_queue
REJECT_NOT_FOUND = "not_found"
REJECT_NOT_PRODUCTION = "not_production_item"
REJECT_ORDER_INACTIVE = "order_inactive"

# Naive UTC origin of the epoch seconds returned by the database
EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """Naive UTC, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class RejectedItem:
    line_item_id: int
    reason: str


@dataclass
class AddToQueueResult:
    added: List[PrintQueueEntry] = field(default_factory=list)
    already_queued: List[int] = field(default_factory=list)
    rejected: List[RejectedItem] = field(default_factory=list)


@dataclass
class PrintBatch:
    items: List[PrintQueueEntry]
    classification: BatchClassification

    @property
    def can_print_without_warning(self) -> bool:
        return self.classification.can_print_without_warning

    @property
    def requires_warning(self) -> bool:
        return self.classification.requires_warning

    @property
    def warning_message(self) -> Optional[str]:
        return self.classification.warning_message


@dataclass
class QueueStatus:
    total_items: int
    unprinted_items: int
    printed_items: int
    old_printed_items: int
    orphaned_items: int
    average_queue_age_seconds: float
    oldest_unprinted_added_at: Optional[datetime]
    ready_to_print: int
    requires_warning: bool


@dataclass
class BatchValidation:
    classification: BatchClassification
    batch_size: int
    standard_batch_size: int
    recommendations: List[str]
    queue_status: QueueStatus


def validate_ids(ids: Optional[Iterable], field_name: str, allow_empty: bool = False) -> List[int]:
    """
    Check an id list and de-duplicate it, keeping first-seen order.

    Raises:
        ValidationError: empty list (unless allowed) or an id that is not a
            positive integer
    """
    if ids is None:
        ids = []
    unique: List[int] = []
    seen = set()
    for value in ids:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(
                f"Invalid {field_name}: {value!r}", field=field_name, value=value
            )
        if value not in seen:
            seen.add(value)
            unique.append(value)
    if not unique and not allow_empty:
        raise ValidationError(f"{field_name} must not be empty", field=field_name)
    return unique


class PrintQueueRepository:
    """Queries against print_queue. Never commits."""

    def lock_entries_for_line_items(self, db: Session, line_item_ids: List[int]) -> List[PrintQueueEntry]:
        return (
            db.query(PrintQueueEntry)
            .filter(PrintQueueEntry.line_item_id.in_(line_item_ids))
            .order_by(PrintQueueEntry.id)
            .with_for_update()
            .all()
        )

    def lock_unprinted(self, db: Session, entry_ids: List[int]) -> List[PrintQueueEntry]:
        return (
            db.query(PrintQueueEntry)
            .filter(
                PrintQueueEntry.id.in_(entry_ids),
                PrintQueueEntry.is_printed.is_(False),
            )
            .order_by(PrintQueueEntry.id)
            .with_for_update()
            .all()
        )

    def mark_printed(self, db: Session, entry_ids: List[int], printed_at: datetime, printed_by: str) -> int:
        """Conditional update; returns how many rows actually flipped."""
        return (
            db.query(PrintQueueEntry)
            .filter(
                PrintQueueEntry.id.in_(entry_ids),
                PrintQueueEntry.is_printed.is_(False),
            )
            .update(
                {
                    PrintQueueEntry.is_printed: True,
                    PrintQueueEntry.printed_at: printed_at,
                    PrintQueueEntry.printed_by: printed_by,
                },
                synchronize_session=False,
            )
        )

    def fifo_unprinted(self, db: Session, limit: int, offset: int = 0) -> List[PrintQueueEntry]:
        return (
            db.query(PrintQueueEntry)
            .options(selectinload(PrintQueueEntry.line_item))
            .filter(PrintQueueEntry.is_printed.is_(False))
            .order_by(PrintQueueEntry.added_at.asc(), PrintQueueEntry.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_unprinted(self, db: Session) -> int:
        return (
            db.query(func.count(PrintQueueEntry.id))
            .filter(PrintQueueEntry.is_printed.is_(False))
            .scalar()
        ) or 0

    def count_all(self, db: Session) -> int:
        return db.query(func.count(PrintQueueEntry.id)).scalar() or 0

    def old_printed_query(self, db: Session, cutoff: datetime):
        return db.query(PrintQueueEntry).filter(
            PrintQueueEntry.is_printed.is_(True),
            PrintQueueEntry.printed_at < cutoff,
        )

    def orphaned_query(self, db: Session):
        # LEFT JOIN: entries whose line item no longer exists
        return (
            db.query(PrintQueueEntry)
            .outerjoin(OrderItem, PrintQueueEntry.line_item_id == OrderItem.id)
            .filter(OrderItem.id.is_(None))
        )

    def unprinted_age_summary(self, db: Session):
        """Oldest added_at and mean added_at (epoch seconds) of unprinted entries."""
        return (
            db.query(
                func.min(PrintQueueEntry.added_at),
                func.avg(extract("epoch", PrintQueueEntry.added_at)),
            )
            .filter(PrintQueueEntry.is_printed.is_(False))
            .one()
        )


class PrintQueueService:
    """
    Print queue operations.

    Methods that write take ``commit``; pass ``commit=False`` to run inside a
    caller's transaction (order approval does this inside a savepoint).
    """

    def __init__(
        self,
        repository: Optional[PrintQueueRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
        capacity: Optional[int] = None,
    ):
        self.repository = repository or PrintQueueRepository()
        self.clock = clock or utcnow
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity or settings.PRINT_QUEUE_BATCH_SIZE

    # ========================================================================
    # ENQUEUE
    # ========================================================================

    def add_to_queue(
        self,
        db: Session,
        line_item_ids: Iterable[int],
        actor_id: str,
        commit: bool = True,
    ) -> AddToQueueResult:
        """
        Queue line items for label printing.

        Already-queued items are left alone, printed ones are reset to the
        back of the queue, and anything that is not an active production
        line is returned in ``rejected`` with its reason.

        Raises:
            ValidationError: an id is not a positive integer
            TransientError / DatabaseError: the write failed
        """
        ids = validate_ids(line_item_ids, "line_item_ids", allow_empty=True)
        result = AddToQueueResult()
        if not ids:
            return result

        try:
            eligible = self._classify_line_items(db, ids, result)
            if eligible:
                self._enqueue(db, eligible, actor_id, result)
            db.flush()
            if commit:
                db.commit()
        except SQLAlchemyError as e:
            if commit:
                db.rollback()
            logger.error(f"Failed to add {len(ids)} item(s) to print queue: {e}")
            raise translate_db_error(e, "add to print queue")

        logger.info(
            f"Print queue add by {actor_id}: {len(result.added)} added, "
            f"{len(result.already_queued)} already queued, {len(result.rejected)} rejected",
            extra={
                "actor_id": actor_id,
                "added": [entry.line_item_id for entry in result.added],
                "rejected": [(r.line_item_id, r.reason) for r in result.rejected],
            },
        )
        return result

    def _classify_line_items(self, db: Session, ids: List[int], result: AddToQueueResult) -> List[int]:
        rows = (
            db.query(OrderItem.id, OrderItem.is_production, Order.status)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(OrderItem.id.in_(ids))
            .all()
        )
        found = {row.id: row for row in rows}

        eligible = []
        for line_item_id in ids:
            row = found.get(line_item_id)
            if row is None:
                result.rejected.append(RejectedItem(line_item_id, REJECT_NOT_FOUND))
            elif not row.is_production:
                result.rejected.append(RejectedItem(line_item_id, REJECT_NOT_PRODUCTION))
            elif not is_order_active(row.status):
                result.rejected.append(RejectedItem(line_item_id, REJECT_ORDER_INACTIVE))
            else:
                eligible.append(line_item_id)
        return eligible

    def _enqueue(self, db: Session, ids: List[int], actor_id: str, result: AddToQueueResult) -> None:
        existing = {
            entry.line_item_id: entry
            for entry in self.repository.lock_entries_for_line_items(db, ids)
        }
        now = self.clock()

        for line_item_id in ids:
            entry = existing.get(line_item_id)
            if entry is not None and not entry.is_printed:
                result.already_queued.append(line_item_id)
                continue

            if entry is not None:
                # Printed before: send it to the back of the queue again
                entry.is_printed = False
                entry.printed_at = None
                entry.printed_by = None
                entry.added_at = now
                entry.added_by = actor_id
                result.added.append(entry)
                continue

            entry = PrintQueueEntry(
                line_item_id=line_item_id,
                added_at=now,
                added_by=actor_id,
                is_printed=False,
            )
            try:
                with db.begin_nested():
                    db.add(entry)
            except IntegrityError:
                # A concurrent add inserted the same line item first
                logger.info(f"Line item {line_item_id} queued concurrently; treating as already queued")
                result.already_queued.append(line_item_id)
                continue
            result.added.append(entry)

    # ========================================================================
    # READ
    # ========================================================================

    def get_next_batch(self, db: Session) -> PrintBatch:
        """Oldest unprinted entries, at most one sheet. Read-only."""
        capacity = self.capacity
        items = self.repository.fifo_unprinted(db, limit=capacity)
        classification = classify_batch(len(items), capacity)
        if len(items) > capacity:
            items = items[:capacity]
        return PrintBatch(items=items, classification=classification)

    def can_print_batch(self, db: Session) -> bool:
        return self.get_next_batch(db).can_print_without_warning

    def get_queue(self, db: Session, limit: int = 50, offset: int = 0) -> List[PrintQueueEntry]:
        return self.repository.fifo_unprinted(db, limit=limit, offset=offset)

    def get_queue_count(self, db: Session) -> int:
        return self.repository.count_unprinted(db)

    def get_queue_status(self, db: Session) -> QueueStatus:
        now = self.clock()
        cutoff = now - timedelta(days=settings.PRINT_QUEUE_RETENTION_DAYS)

        total = self.repository.count_all(db)
        unprinted = self.repository.count_unprinted(db)
        old_printed = self.repository.old_printed_query(db, cutoff).count()
        orphaned = self.repository.orphaned_query(db).count()

        oldest, mean_epoch = self.repository.unprinted_age_summary(db)
        average_age = 0.0
        if mean_epoch is not None:
            average_age = max((now - EPOCH).total_seconds() - float(mean_epoch), 0.0)

        capacity = self.capacity
        return QueueStatus(
            total_items=total,
            unprinted_items=unprinted,
            printed_items=total - unprinted,
            old_printed_items=old_printed,
            orphaned_items=orphaned,
            average_queue_age_seconds=round(average_age, 1),
            oldest_unprinted_added_at=oldest,
            ready_to_print=min(unprinted, capacity),
            requires_warning=0 < unprinted < capacity,
        )

    def validate_batch(self, db: Session) -> BatchValidation:
        """Classify the next batch and suggest what the operator should do."""
        batch = self.get_next_batch(db)
        size = len(batch.items)
        capacity = self.capacity

        if size == 0:
            recommendations = [
                "No items in queue - approve orders to add items",
                "Check that orders have been properly approved",
            ]
        elif size < capacity:
            recommendations = [
                f"Wait for {capacity - size} more items for optimal printing",
                "Partial batches may result in paper waste",
                "You can proceed if urgent printing is needed",
            ]
        elif batch.classification.is_valid:
            recommendations = [
                "Perfect batch size for optimal paper usage",
                "Ready to print without warnings",
            ]
        else:
            recommendations = ["Batch size exceeds standard - this should not normally happen"]

        return BatchValidation(
            classification=batch.classification,
            batch_size=size,
            standard_batch_size=capacity,
            recommendations=recommendations,
            queue_status=self.get_queue_status(db),
        )

    # ========================================================================
    # PRINT / REMOVE
    # ========================================================================

    def mark_batch_printed(self, db: Session, queue_entry_ids: Iterable[int], actor_id: str) -> int:
        """
        Mark every listed entry printed, or none of them.

        Raises:
            ValidationError: empty or malformed id list
            NotFoundError: an id is missing or already printed (including by
                a concurrent caller)
            TransientError / DatabaseError: the write failed
        """
        ids = validate_ids(queue_entry_ids, "queue_entry_ids")

        try:
            locked = self.repository.lock_unprinted(db, ids)
            missing = sorted(set(ids) - {entry.id for entry in locked})
            if missing:
                db.rollback()
                raise NotFoundError(
                    "Print queue entry",
                    message=f"Print queue entries not found or already printed: {missing}",
                    details={"missing_ids": missing},
                )

            updated = self.repository.mark_printed(db, ids, self.clock(), actor_id)
            if updated != len(ids):
                db.rollback()
                logger.warning(
                    f"Mark printed race lost: expected {len(ids)} rows, updated {updated}",
                    extra={"queue_entry_ids": ids, "actor_id": actor_id},
                )
                raise NotFoundError(
                    "Print queue entry",
                    message="Some print queue entries were printed by another user",
                    details={"queue_entry_ids": ids},
                )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to mark {len(ids)} entries printed: {e}")
            raise translate_db_error(e, "mark batch printed")

        logger.info(
            f"Marked {updated} print queue entries printed by {actor_id}",
            extra={"queue_entry_ids": ids, "actor_id": actor_id},
        )
        return updated

    def remove_from_queue(self, db: Session, queue_entry_ids: Iterable[int]) -> int:
        """Hard delete for manual corrections. Returns the number removed."""
        ids = validate_ids(queue_entry_ids, "queue_entry_ids")
        try:
            removed = (
                db.query(PrintQueueEntry)
                .filter(PrintQueueEntry.id.in_(ids))
                .delete(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise translate_db_error(e, "remove from print queue")

        logger.info(f"Removed {removed} print queue entries", extra={"queue_entry_ids": ids})
        return removed


# Singleton instance
print_queue_service = PrintQueueService()
