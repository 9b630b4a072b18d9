"""Order database table models."""

from datetime import datetime
from decimal import Decimal

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class OrderTable(EntityTable, table=True):
    """Order header row.

    Customer columns and ``shipping_address`` hold ciphertext when field
    encryption is enabled; the address is JSON before encryption.
    """

    user_id: str | None = Field(default=None, foreign_key="usertable.id", index=True)
    order_number: str = Field(index=True, unique=True)
    external_reference: str | None = Field(default=None, index=True)
    status: str = Field(default="pending", index=True)
    payment_status: str = Field(default="pending")
    payment_method: str | None = None
    payment_id: str | None = None
    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    shipping_cost: Decimal = Field(max_digits=10, decimal_places=2)
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = "BRL"
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_cpf: str | None = None
    shipping_address: str | None = None
    tracking_code: str | None = Field(default=None, index=True)
    tracking_url: str | None = None
    shipping_company: str | None = None
    shipping_notes: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None


class OrderItemTable(EntityTable, table=True):
    order_id: str = Field(foreign_key="ordertable.id", index=True)
    product_id: str = Field(foreign_key="producttable.id", index=True)
    variant_id: str | None = None
    product_name: str
    product_sku: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)
    total_price: Decimal = Field(max_digits=10, decimal_places=2)
