"""ProductModel database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class ProductModelTable(EntityTable, table=True):
    name: str
    slug: str = Field(index=True, unique=True)
    description: str | None = None
    image_url: str | None = None
    brand_id: str | None = Field(default=None, foreign_key="brandtable.id")
    sort_order: int = 0
    is_active: bool = True
