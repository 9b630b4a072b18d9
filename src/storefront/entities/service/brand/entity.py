"""Entity: Brand."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Brand(Entity):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=120)
    description: str | None = None
    logo_url: str | None = None
    is_active: bool = True
