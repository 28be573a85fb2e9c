"""
Customer Model

Customers own orders. PO numbers are unique per customer, which is what the
duplicate PO check looks at.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class Customer(Base):
    """Customer - company or person placing orders"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active, inactive

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = relationship("Order", back_populates="customer")

    def __repr__(self):
        return f"<Customer {self.id} {self.name}>"
