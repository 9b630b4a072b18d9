"""Entity package: ProductModel (a product line within a brand)."""

from .entity import ProductModel
from .repository import ProductModelRepository
from .table import ProductModelTable

__all__ = ["ProductModel", "ProductModelRepository", "ProductModelTable"]
