"""Entity package: Product with its media and size variants."""

from .entity import (
    ColorCount,
    Product,
    ProductFilters,
    ProductImage,
    ProductVariant,
    ProductVideo,
)
from .repository import (
    ProductMediaRepository,
    ProductRepository,
    ProductVariantRepository,
)
from .table import (
    ProductImageTable,
    ProductTable,
    ProductVariantTable,
    ProductVideoTable,
)

__all__ = [
    "ColorCount",
    "Product",
    "ProductFilters",
    "ProductImage",
    "ProductImageTable",
    "ProductMediaRepository",
    "ProductRepository",
    "ProductTable",
    "ProductVariant",
    "ProductVariantRepository",
    "ProductVariantTable",
    "ProductVideo",
    "ProductVideoTable",
]
