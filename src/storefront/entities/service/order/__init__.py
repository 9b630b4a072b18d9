"""Entity package: Order and OrderItem."""

from .entity import Order, OrderItem, OrderStatus, PaymentStatus
from .repository import OrderItemRepository, OrderRepository
from .table import OrderItemTable, OrderTable

__all__ = [
    "Order",
    "OrderItem",
    "OrderItemRepository",
    "OrderItemTable",
    "OrderRepository",
    "OrderStatus",
    "OrderTable",
    "PaymentStatus",
]
