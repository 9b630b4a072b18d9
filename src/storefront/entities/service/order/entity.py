"""Entities: Order and OrderItem."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import Field

from src.storefront.entities.core._base import Entity


class OrderStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Statuses whose totals count towards revenue on the dashboard
REVENUE_STATUSES = (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED)


class Order(Entity):
    """Order header.

    Customer fields and ``shipping_address`` are plaintext here; the
    repository encrypts them for storage.
    """

    user_id: str | None = None
    order_number: str
    external_reference: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = None
    payment_id: str | None = None
    subtotal: Decimal = Field(ge=0, decimal_places=2)
    shipping_cost: Decimal = Field(ge=0, decimal_places=2)
    total_amount: Decimal = Field(ge=0, decimal_places=2)
    currency: str = "BRL"
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_cpf: str | None = None
    shipping_address: dict[str, Any] | None = None
    tracking_code: str | None = None
    tracking_url: str | None = None
    shipping_company: str | None = None
    shipping_notes: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None


class OrderItem(Entity):
    order_id: str
    product_id: str
    variant_id: str | None = None
    product_name: str
    product_sku: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    total_price: Decimal = Field(ge=0, decimal_places=2)
