"""
Audit Service

Records before/after snapshots of business actions. Auditing is best effort:
a failed write is logged and never propagated, so call ``record`` only after
the audited change has been committed.
"""
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models.audit_log import AuditLog

logger = get_logger(__name__)


class AuditService:

    def record(
        self,
        db: Session,
        action: str,
        entity_name: str,
        entity_id: Any = None,
        old_value: Optional[dict] = None,
        new_value: Optional[dict] = None,
        actor_id: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Write one audit row in its own transaction.

        Args:
            db: Database session (must have no pending work)
            action: Dotted action name, e.g. "order.approved"
            entity_name: Table or entity type
            entity_id: Identifier of the entity
            old_value: State before the action
            new_value: State after the action
            actor_id: Who performed it

        Returns:
            The AuditLog row, or None if it could not be written
        """
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            entity_name=entity_name,
            entity_id=str(entity_id) if entity_id is not None else None,
            old_value=old_value,
            new_value=new_value,
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                f"Failed to write audit log for {action} {entity_name}:{entity_id}: {e}",
                extra={"action": action, "entity_name": entity_name, "entity_id": str(entity_id)},
            )
            return None
        return entry


# Singleton instance
audit_service = AuditService()
