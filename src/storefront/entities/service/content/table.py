"""Storefront content table models."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class TestimonialTable(EntityTable, table=True):
    customer_name: str
    content: str
    rating: int = 5
    avatar_url: str | None = None
    location: str | None = None
    is_featured: bool = False
    is_active: bool = True
    sort_order: int = 0


class BannerTable(EntityTable, table=True):
    title: str
    subtitle: str | None = None
    image_url: str
    mobile_image_url: str | None = None
    link_url: str | None = None
    position: str = Field(default="home", index=True)
    sort_order: int = 0
    is_active: bool = True


class SiteSettingTable(EntityTable, table=True):
    key: str = Field(index=True, unique=True)
    value: str | None = None
    value_type: str = "string"
    description: str | None = None
