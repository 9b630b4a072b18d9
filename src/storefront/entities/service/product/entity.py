"""Entities: Product, ProductImage, ProductVideo, ProductVariant."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from src.storefront.entities.core._base import Entity


class Product(Entity):
    """A sellable item.

    ``price`` is what the customer pays; ``original_price`` is the
    struck-through list price shown next to it when the item is on sale.
    """

    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    original_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    sku: str | None = None
    stock_quantity: int = Field(default=0, ge=0)
    color: str | None = None
    color_hex: str | None = None
    brand_id: str | None = None
    category_id: str | None = None
    subcategory_id: str | None = None
    model_id: str | None = None
    is_featured: bool = False
    is_active: bool = True

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Product):
            return False
        return self.id == other.id and self.slug == other.slug and self.price == other.price

    def __hash__(self) -> int:
        return hash((self.id, self.slug, self.price))


class ProductImage(Entity):
    product_id: str
    url: str
    alt_text: str | None = None
    is_primary: bool = False
    sort_order: int = 0


class ProductVideo(Entity):
    product_id: str
    url: str
    title: str | None = None
    is_primary: bool = False
    sort_order: int = 0


class ProductVariant(Entity):
    """A size of a product with its own stock."""

    product_id: str
    size: str
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = True


class ProductFilters(BaseModel):
    """Catalog listing filters; unset fields do not constrain the query."""

    brand_id: str | None = None
    category_id: str | None = None
    subcategory_id: str | None = None
    subcategory_slug: str | None = None
    model_id: str | None = None
    color: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    is_featured: bool | None = None
    search: str | None = None
    include_inactive: bool = False
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class ColorCount(BaseModel):
    color: str
    color_hex: str | None = None
    product_count: int
