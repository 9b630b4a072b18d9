"""Product database table models."""

from decimal import Decimal

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class ProductTable(EntityTable, table=True):
    name: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    description: str | None = None
    price: Decimal = Field(max_digits=10, decimal_places=2)
    original_price: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    sku: str | None = Field(default=None, index=True)
    stock_quantity: int = 0
    color: str | None = Field(default=None, index=True)
    color_hex: str | None = None
    brand_id: str | None = Field(default=None, foreign_key="brandtable.id", index=True)
    category_id: str | None = Field(default=None, foreign_key="categorytable.id", index=True)
    subcategory_id: str | None = Field(
        default=None, foreign_key="subcategorytable.id", index=True
    )
    model_id: str | None = Field(default=None, foreign_key="productmodeltable.id", index=True)
    is_featured: bool = False
    is_active: bool = Field(default=True, index=True)


class ProductImageTable(EntityTable, table=True):
    product_id: str = Field(foreign_key="producttable.id", index=True)
    url: str
    alt_text: str | None = None
    is_primary: bool = False
    sort_order: int = 0


class ProductVideoTable(EntityTable, table=True):
    product_id: str = Field(foreign_key="producttable.id", index=True)
    url: str
    title: str | None = None
    is_primary: bool = False
    sort_order: int = 0


class ProductVariantTable(EntityTable, table=True):
    product_id: str = Field(foreign_key="producttable.id", index=True)
    size: str
    stock_quantity: int = 0
    is_active: bool = True
