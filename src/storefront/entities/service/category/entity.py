"""Entities: Category and Subcategory."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Category(Entity):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=120)
    description: str | None = None
    image_url: str | None = None
    sort_order: int = 0
    is_active: bool = True


class Subcategory(Entity):
    category_id: str
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=120)
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True
