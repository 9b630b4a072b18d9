"""Brand database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class BrandTable(EntityTable, table=True):
    name: str
    slug: str = Field(index=True, unique=True)
    description: str | None = None
    logo_url: str | None = None
    is_active: bool = True
