"""Entity package: Category and Subcategory."""

from .entity import Category, Subcategory
from .repository import CategoryRepository, SubcategoryRepository
from .table import CategoryTable, SubcategoryTable

__all__ = [
    "Category",
    "CategoryRepository",
    "CategoryTable",
    "Subcategory",
    "SubcategoryRepository",
    "SubcategoryTable",
]
