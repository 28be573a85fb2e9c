"""
Print Queue Model

One row per line item waiting for (or done with) a shipping label. Printed
rows are kept for auditing until maintenance removes them, and re-queuing a
printed item resets the same row instead of inserting another one.
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class PrintQueueEntry(Base):
    """Label print queue entry"""
    __tablename__ = "print_queue"
    __table_args__ = (
        # FIFO read: WHERE is_printed = false ORDER BY added_at, id
        Index("ix_print_queue_is_printed_added_at", "is_printed", "added_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # No foreign key: the line item may be deleted while its entry remains
    # (orphan), which maintenance detects and cleans up.
    line_item_id = Column(Integer, nullable=False, unique=True, index=True)

    added_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    added_by = Column(String(100), nullable=False)

    is_printed = Column(Boolean, nullable=False, default=False)
    printed_at = Column(DateTime, nullable=True)
    printed_by = Column(String(100), nullable=True)

    line_item = relationship(
        "OrderItem",
        primaryjoin="foreign(PrintQueueEntry.line_item_id) == OrderItem.id",
        viewonly=True,
    )

    def __repr__(self):
        state = "printed" if self.is_printed else "queued"
        return f"<PrintQueueEntry {self.id} item={self.line_item_id} {state}>"
