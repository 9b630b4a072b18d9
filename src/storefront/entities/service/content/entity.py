"""Entities: Testimonial, Banner, SiteSetting."""

import json
from typing import Any, Literal

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Testimonial(Entity):
    customer_name: str
    content: str
    rating: int = Field(default=5, ge=1, le=5)
    avatar_url: str | None = None
    location: str | None = None
    is_featured: bool = False
    is_active: bool = True
    sort_order: int = 0


class Banner(Entity):
    title: str
    subtitle: str | None = None
    image_url: str
    mobile_image_url: str | None = None
    link_url: str | None = None
    position: str = "home"
    sort_order: int = 0
    is_active: bool = True


class SiteSetting(Entity):
    """A key/value setting; ``value`` is stored as text and typed by ``value_type``."""

    key: str
    value: str | None = None
    value_type: Literal["string", "number", "boolean", "json"] = "string"
    description: str | None = None

    def typed_value(self) -> Any:
        if self.value is None:
            return None
        if self.value_type == "number":
            return float(self.value)
        if self.value_type == "boolean":
            return self.value.lower() in {"1", "true", "yes"}
        if self.value_type == "json":
            return json.loads(self.value)
        return self.value
