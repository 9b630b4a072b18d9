"""Public catalog endpoints: products, brands, categories, models and site content."""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_db_session,
    get_optional_user,
    get_security_logger,
)
from src.storefront.api.http.payloads import screen
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.core.validation import ReviewCreateSchema
from src.storefront.entities.core.user import User
from src.storefront.entities.service.brand import Brand, BrandRepository
from src.storefront.entities.service.category import (
    Category,
    CategoryRepository,
    Subcategory,
    SubcategoryRepository,
)
from src.storefront.entities.service.content import (
    Banner,
    BannerRepository,
    Testimonial,
    TestimonialRepository,
)
from src.storefront.entities.service.product import (
    ColorCount,
    Product,
    ProductFilters,
    ProductImage,
    ProductMediaRepository,
    ProductRepository,
    ProductVariant,
    ProductVariantRepository,
    ProductVideo,
)
from src.storefront.entities.service.product_model import (
    ProductModel,
    ProductModelRepository,
)
from src.storefront.entities.service.review import PublicReview, Review, ReviewRepository

router = APIRouter(tags=["catalog"])


class ProductCard(BaseModel):
    """Listing row: the product plus its primary image."""

    product: Product
    image_url: str | None = None


class ProductDetail(BaseModel):
    product: Product
    images: list[ProductImage]
    videos: list[ProductVideo]
    variants: list[ProductVariant]
    similar: list[ProductCard]
    reviews: list[PublicReview]
    rating: dict[str, float | int]


class BrandProducts(BaseModel):
    brand: Brand
    products: list[ProductCard]


class ModelProducts(BaseModel):
    model: ProductModel
    products: list[ProductCard]


def _cards(db: Session, products: list[Product]) -> list[ProductCard]:
    media = ProductMediaRepository(db)
    return [
        ProductCard(product=product, image_url=media.primary_image_url(product.id))
        for product in products
    ]


@router.get("/products", response_model=list[ProductCard])
def list_products(
    brand: str | None = None,
    category: str | None = None,
    subcategory: str | None = None,
    subcategory_slug: str | None = None,
    model: str | None = None,
    color: str | None = None,
    featured: bool | None = None,
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    search: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
) -> list[ProductCard]:
    """Active products, featured first then newest."""
    filters = ProductFilters(
        brand_id=brand,
        category_id=category,
        subcategory_id=subcategory,
        subcategory_slug=subcategory_slug,
        model_id=model,
        color=color,
        is_featured=featured,
        min_price=min_price,
        max_price=max_price,
        search=search,
        limit=limit,
        offset=offset,
    )
    return _cards(db, ProductRepository(db).list_filtered(filters))


@router.get("/products/search", response_model=list[ProductCard])
def search_products(
    q: str = Query(min_length=1, max_length=100),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db_session),
) -> list[ProductCard]:
    return _cards(db, ProductRepository(db).search(q, limit=limit))


@router.get("/products/colors", response_model=list[ColorCount])
def list_colors(db: Session = Depends(get_db_session)) -> list[ColorCount]:
    return ProductRepository(db).list_colors()


@router.get("/products/brand/{slug}", response_model=BrandProducts)
def products_by_brand(
    slug: str,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db_session),
) -> BrandProducts:
    """Products of a brand; an unknown slug yields a placeholder brand named after it."""
    brand = BrandRepository(db).get_by_slug(slug)
    if brand is None:
        placeholder = Brand(name=slug.replace("-", " ").title(), slug=slug)
        return BrandProducts(brand=placeholder, products=[])

    products = ProductRepository(db).list_filtered(ProductFilters(brand_id=brand.id, limit=limit))
    return BrandProducts(brand=brand, products=_cards(db, products))


@router.get("/products/model/{slug}", response_model=ModelProducts)
def products_by_model(
    slug: str,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db_session),
) -> ModelProducts:
    model = ProductModelRepository(db).get_by_slug(slug)
    if model is None:
        raise HTTPException(status_code=404, detail="Model not found")

    products = ProductRepository(db).list_filtered(ProductFilters(model_id=model.id, limit=limit))
    return ModelProducts(model=model, products=_cards(db, products))


@router.get("/products/{slug}", response_model=ProductDetail)
def get_product(slug: str, db: Session = Depends(get_db_session)) -> ProductDetail:
    products = ProductRepository(db)
    product = products.get_by_slug(slug)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    media = ProductMediaRepository(db)
    reviews = ReviewRepository(db)
    return ProductDetail(
        product=product,
        images=media.list_images(product.id),
        videos=media.list_videos(product.id),
        variants=ProductVariantRepository(db).list_for_product(product.id),
        similar=_cards(db, products.list_similar(product)),
        reviews=[PublicReview.from_review(review) for review in reviews.list_approved(product.id)],
        rating=reviews.rating_summary(product.id),
    )


@router.get("/products/{slug}/reviews", response_model=list[PublicReview])
def list_reviews(slug: str, db: Session = Depends(get_db_session)) -> list[PublicReview]:
    product = ProductRepository(db).get_by_slug(slug)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return [PublicReview.from_review(review) for review in ReviewRepository(db).list_approved(product.id)]


@router.post("/products/{slug}/reviews", status_code=201, response_model=PublicReview)
def create_review(
    slug: str,
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> PublicReview:
    """Store a review; it stays hidden until an administrator approves it."""
    data = screen(ReviewCreateSchema, request, payload, security_logger)
    product = ProductRepository(db).get_by_slug(slug)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    review = ReviewRepository(db).create(
        Review(
            product_id=product.id,
            user_id=user.id if user else None,
            **data.model_dump(),
        )
    )
    db.commit()
    return PublicReview.from_review(review)


@router.get("/brands", response_model=list[Brand])
def list_brands(db: Session = Depends(get_db_session)) -> list[Brand]:
    return BrandRepository(db).list_all()


@router.get("/categories", response_model=list[Category])
def list_categories(db: Session = Depends(get_db_session)) -> list[Category]:
    return CategoryRepository(db).list_all()


@router.get("/categories/{slug}/subcategories", response_model=list[Subcategory])
def list_subcategories(slug: str, db: Session = Depends(get_db_session)) -> list[Subcategory]:
    category = CategoryRepository(db).get_by_slug(slug)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return SubcategoryRepository(db).list_for_category(category.id)


@router.get("/models", response_model=list[ProductModel])
def list_models(
    brand: str | None = None,
    slug: str | None = None,
    db: Session = Depends(get_db_session),
) -> list[ProductModel]:
    """Active models; ``slug`` narrows the answer to that one model."""
    models = ProductModelRepository(db)
    if slug:
        model = models.get_by_slug(slug)
        return [model] if model is not None else []
    return models.list_active(brand_id=brand)


@router.get("/banners", response_model=list[Banner])
def list_banners(
    position: str = Query(default="home", max_length=50),
    db: Session = Depends(get_db_session),
) -> list[Banner]:
    return BannerRepository(db).list_by_position(position)


@router.get("/testimonials", response_model=list[Testimonial])
def list_testimonials(
    featured: bool = False,
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db_session),
) -> list[Testimonial]:
    return TestimonialRepository(db).list_active(featured_only=featured, limit=limit)
