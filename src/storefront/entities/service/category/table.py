"""Category database table models."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class CategoryTable(EntityTable, table=True):
    name: str
    slug: str = Field(index=True, unique=True)
    description: str | None = None
    image_url: str | None = None
    sort_order: int = 0
    is_active: bool = True


class SubcategoryTable(EntityTable, table=True):
    category_id: str = Field(foreign_key="categorytable.id", index=True)
    name: str
    slug: str = Field(index=True, unique=True)
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True
