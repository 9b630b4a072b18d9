"""Entities organised by business concept.

Each entity package contains:
- entity.py: Domain model with business logic
- table.py: Database persistence model
- repository.py: Data access layer

Importing this package registers every table with ``SQLModel.metadata``.
"""

from .core.auth_token import AuthToken, AuthTokenRepository, AuthTokenTable, TokenPurpose
from .core.user import User, UserRepository, UserTable
from .service.address import Address, AddressRepository, AddressTable
from .service.brand import Brand, BrandRepository, BrandTable
from .service.category import (
    Category,
    CategoryRepository,
    CategoryTable,
    Subcategory,
    SubcategoryRepository,
    SubcategoryTable,
)
from .service.content import (
    Banner,
    BannerRepository,
    BannerTable,
    SiteSetting,
    SiteSettingRepository,
    SiteSettingTable,
    Testimonial,
    TestimonialRepository,
    TestimonialTable,
)
from .service.order import (
    Order,
    OrderItem,
    OrderItemRepository,
    OrderItemTable,
    OrderRepository,
    OrderStatus,
    OrderTable,
    PaymentStatus,
)
from .service.product import (
    ColorCount,
    Product,
    ProductFilters,
    ProductImage,
    ProductImageTable,
    ProductMediaRepository,
    ProductRepository,
    ProductTable,
    ProductVariant,
    ProductVariantRepository,
    ProductVariantTable,
    ProductVideo,
    ProductVideoTable,
)
from .service.product_model import ProductModel, ProductModelRepository, ProductModelTable
from .service.review import Review, ReviewRepository, ReviewTable

__all__ = [
    "Address",
    "AddressRepository",
    "AddressTable",
    "AuthToken",
    "AuthTokenRepository",
    "AuthTokenTable",
    "Banner",
    "BannerRepository",
    "BannerTable",
    "Brand",
    "BrandRepository",
    "BrandTable",
    "Category",
    "CategoryRepository",
    "CategoryTable",
    "ColorCount",
    "Order",
    "OrderItem",
    "OrderItemRepository",
    "OrderItemTable",
    "OrderRepository",
    "OrderStatus",
    "OrderTable",
    "PaymentStatus",
    "Product",
    "ProductFilters",
    "ProductImage",
    "ProductImageTable",
    "ProductMediaRepository",
    "ProductModel",
    "ProductModelRepository",
    "ProductModelTable",
    "ProductRepository",
    "ProductTable",
    "ProductVariant",
    "ProductVariantRepository",
    "ProductVariantTable",
    "ProductVideo",
    "ProductVideoTable",
    "Review",
    "ReviewRepository",
    "ReviewTable",
    "SiteSetting",
    "SiteSettingRepository",
    "SiteSettingTable",
    "Subcategory",
    "SubcategoryRepository",
    "SubcategoryTable",
    "Testimonial",
    "TestimonialRepository",
    "TestimonialTable",
    "TokenPurpose",
    "User",
    "UserRepository",
    "UserTable",
]
