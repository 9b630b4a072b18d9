"""Entity: ProductModel."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class ProductModel(Entity):
    name: str = Field(min_length=1, max_length=150)
    slug: str = Field(min_length=1, max_length=160)
    description: str | None = None
    image_url: str | None = None
    brand_id: str | None = None
    sort_order: int = 0
    is_active: bool = True
