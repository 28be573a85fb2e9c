"""
Audit Log Model

Before/after snapshots of business actions (order approvals, queue
maintenance runs).
"""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String

from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(String(100), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)  # order.approved, print_queue.cleanup
    entity_name = Column(String(100), nullable=False)
    entity_id = Column(String(100), nullable=True)

    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_name}:{self.entity_id}>"
