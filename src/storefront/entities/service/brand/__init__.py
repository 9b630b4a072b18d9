"""Entity package: Brand."""

from .entity import Brand
from .repository import BrandRepository
from .table import BrandTable

__all__ = ["Brand", "BrandRepository", "BrandTable"]
