"""Database models"""
from app.models.customer import Customer
from app.models.order import Order, OrderItem
from app.models.print_queue import PrintQueueEntry
from app.models.audit_log import AuditLog

__all__ = [
    "Customer",
    "Order",
    "OrderItem",
    "PrintQueueEntry",
    "AuditLog",
]
