"""
Order and OrderItem Models

An order moves pending -> approved -> in_production -> ready_to_ship ->
shipped -> completed (see app.core.status_config). Production items of an
approved order are fed into the print queue.
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.status_config import OrderItemStatus, OrderStatus, is_order_active
from app.db.base import Base


class Order(Base):
    """Customer order"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(
        Integer,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    order_number = Column(String(50), unique=True, nullable=False, index=True)  # SO-2025-001
    po_number = Column(String(100), nullable=True, index=True)  # Customer PO, order level

    status = Column(String(50), nullable=False, default=OrderStatus.PENDING.value, index=True)
    # Written once, by the approval transition
    approved_at = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    @property
    def is_active(self) -> bool:
        return is_order_active(self.status)

    @property
    def production_items(self):
        return [item for item in self.items if item.is_production]

    def snapshot(self) -> dict:
        """Serializable view used for audit before/after values."""
        return {
            "id": self.id,
            "order_number": self.order_number,
            "status": self.status,
            "po_number": self.po_number,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
        }

    def __repr__(self):
        return f"<Order {self.order_number} ({self.status})>"


class OrderItem(Base):
    """Single line of an order"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    # False for non-physical lines (rush fee, shipping, design service)
    is_production = Column(Boolean, nullable=False, default=True)
    item_status = Column(
        String(50),
        nullable=False,
        default=OrderItemStatus.NOT_STARTED_PRODUCTION.value,
    )

    # Item-level PO, used when a customer issues one PO per product
    po_number = Column(String(100), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.id} of order {self.order_id}>"
