"""Back-office catalog management: products, media, brands, categories and reviews."""

from typing import Any, Literal

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
)
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import (
    enforce_origin,
    get_db_session,
    get_security_logger,
    get_upload_service,
    require_admin,
    require_csrf,
)
from src.storefront.api.http.payloads import screen
from src.storefront.core.errors import ConflictError, NotFoundError
from src.storefront.core.security import slugify
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.services.uploads import (
    PRODUCT_IMAGE,
    PRODUCT_VIDEO,
    SecureUploadService,
)
from src.storefront.core.validation import (
    ProductCreateSchema,
    ProductUpdateSchema,
    sanitize_string,
)
from src.storefront.core.validation.schemas import safe_text
from src.storefront.entities.core.user import User
from src.storefront.entities.service.brand import Brand, BrandRepository
from src.storefront.entities.service.category import Category, CategoryRepository
from src.storefront.entities.service.product import (
    Product,
    ProductFilters,
    ProductImage,
    ProductMediaRepository,
    ProductRepository,
    ProductVideo,
)
from src.storefront.entities.service.review import Review, ReviewRepository

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])

_state_changing = [Depends(enforce_origin), Depends(require_csrf)]


class BrandCreateSchema(BaseModel):
    name: safe_text(min_length=1, max_length=100)
    slug: str | None = None
    description: safe_text(max_length=1000) | None = None


class CategoryCreateSchema(BaseModel):
    name: safe_text(min_length=1, max_length=100)
    slug: str | None = None
    description: safe_text(max_length=1000) | None = None
    sort_order: int = 0


class ReviewModeration(BaseModel):
    is_approved: bool


class ProductMedia(BaseModel):
    images: list[ProductImage]
    videos: list[ProductVideo]


def _get_product(db: Session, product_id: str) -> Product:
    product = ProductRepository(db).get(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


@router.get("/products", response_model=list[Product])
def list_products(
    search: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
) -> list[Product]:
    """Every product, inactive ones included."""
    filters = ProductFilters(search=search, include_inactive=True, limit=limit, offset=offset)
    return ProductRepository(db).list_filtered(filters)


@router.post(
    "/products", status_code=201, response_model=Product, dependencies=_state_changing
)
def create_product(
    request: Request,
    payload: dict[str, Any] = Body(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> Product:
    data = screen(ProductCreateSchema, request, payload, security_logger)
    products = ProductRepository(db)
    slug = data.slug or slugify(data.name)
    if products.slug_exists(slug):
        raise ConflictError(f"Slug already in use: {slug}")

    product = products.create(Product(**data.model_dump(exclude={"slug"}), slug=slug))
    db.commit()
    security_logger.log(
        SecurityEventType.PRODUCT_CREATED,
        SecurityLevel.INFO,
        request,
        {"product_id": product.id, "slug": product.slug},
        user_id=admin.id,
    )
    return product


@router.get("/products/{product_id}", response_model=Product)
def get_product(product_id: str, db: Session = Depends(get_db_session)) -> Product:
    return _get_product(db, product_id)


@router.put("/products/{product_id}", response_model=Product, dependencies=_state_changing)
def update_product(
    product_id: str,
    request: Request,
    payload: dict[str, Any] = Body(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> Product:
    data = screen(ProductUpdateSchema, request, payload, security_logger)
    current = _get_product(db, product_id)
    changes = data.model_dump(exclude_none=True)

    products = ProductRepository(db)
    if "slug" in changes and changes["slug"] != current.slug and products.slug_exists(changes["slug"]):
        raise ConflictError(f"Slug already in use: {changes['slug']}")

    product = products.update(current.model_copy(update=changes))
    db.commit()
    security_logger.log(
        SecurityEventType.PRODUCT_UPDATED,
        SecurityLevel.INFO,
        request,
        {"product_id": product.id, "fields": sorted(changes)},
        user_id=admin.id,
    )
    return product


@router.delete("/products/{product_id}", dependencies=_state_changing)
def delete_product(
    product_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> dict[str, str]:
    """Soft delete: the product is deactivated, orders keep pointing at it."""
    if not ProductRepository(db).deactivate(product_id):
        raise NotFoundError("Product not found")
    db.commit()
    security_logger.log(
        SecurityEventType.PRODUCT_DELETED,
        SecurityLevel.WARNING,
        request,
        {"product_id": product_id},
        user_id=admin.id,
    )
    return {"message": "Product deactivated"}


@router.get("/products/{product_id}/media", response_model=ProductMedia)
def list_media(product_id: str, db: Session = Depends(get_db_session)) -> ProductMedia:
    _get_product(db, product_id)
    media = ProductMediaRepository(db)
    return ProductMedia(images=media.list_images(product_id), videos=media.list_videos(product_id))


@router.post(
    "/products/{product_id}/media",
    status_code=201,
    response_model=ProductImage | ProductVideo,
    dependencies=_state_changing,
)
async def upload_media(
    product_id: str,
    request: Request,
    file: UploadFile = File(...),
    kind: Literal["image", "video"] = Form("image"),
    is_primary: bool = Form(False),
    caption: str | None = Form(None, max_length=200),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    uploads: SecureUploadService = Depends(get_upload_service),
) -> ProductImage | ProductVideo:
    _get_product(db, product_id)
    caption = sanitize_string(caption) if caption else None
    data = await file.read()
    filename = file.filename or "upload"

    profile = PRODUCT_IMAGE if kind == "image" else PRODUCT_VIDEO
    result = uploads.validate_file(
        filename, file.content_type, data, profile, request=request, user_id=admin.id
    )
    if not result.valid:
        raise HTTPException(status_code=400, detail={"message": "Invalid file", "errors": result.errors})

    stored = uploads.store_product_media(product_id, filename, data)
    media = ProductMediaRepository(db)
    if kind == "image":
        created: ProductImage | ProductVideo = media.add_image(
            ProductImage(product_id=product_id, url=stored.url, alt_text=caption, is_primary=is_primary)
        )
    else:
        created = media.add_video(
            ProductVideo(product_id=product_id, url=stored.url, title=caption, is_primary=is_primary)
        )
    db.commit()
    return created


@router.delete("/products/{product_id}/media/{media_id}", dependencies=_state_changing)
def delete_media(
    product_id: str,
    media_id: str,
    kind: Literal["image", "video"] = "image",
    db: Session = Depends(get_db_session),
    uploads: SecureUploadService = Depends(get_upload_service),
) -> dict[str, str]:
    media = ProductMediaRepository(db)
    item = media.get_image(media_id) if kind == "image" else media.get_video(media_id)
    if item is None or item.product_id != product_id:
        raise NotFoundError("Media not found")

    if kind == "image":
        media.delete_image(media_id)
    else:
        media.delete_video(media_id)
    db.commit()
    uploads.delete_media(item.url)
    return {"message": "Media deleted"}


@router.get("/brands", response_model=list[Brand])
def list_brands(db: Session = Depends(get_db_session)) -> list[Brand]:
    return BrandRepository(db).list_all(include_inactive=True)


@router.post("/brands", status_code=201, response_model=Brand, dependencies=_state_changing)
def create_brand(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> Brand:
    data = screen(BrandCreateSchema, request, payload, security_logger)
    brands = BrandRepository(db)
    slug = slugify(data.slug or data.name)
    if brands.get_by_slug(slug) is not None:
        raise ConflictError(f"Brand already exists: {slug}")
    brand = brands.create(Brand(**data.model_dump(exclude={"slug"}), slug=slug))
    db.commit()
    return brand


@router.get("/categories", response_model=list[Category])
def list_categories(db: Session = Depends(get_db_session)) -> list[Category]:
    return CategoryRepository(db).list_all(include_inactive=True)


@router.post("/categories", status_code=201, response_model=Category, dependencies=_state_changing)
def create_category(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> Category:
    data = screen(CategoryCreateSchema, request, payload, security_logger)
    categories = CategoryRepository(db)
    slug = slugify(data.slug or data.name)
    if categories.get_by_slug(slug) is not None:
        raise ConflictError(f"Category already exists: {slug}")
    category = categories.create(Category(**data.model_dump(exclude={"slug"}), slug=slug))
    db.commit()
    return category


@router.get("/reviews", response_model=list[Review])
def pending_reviews(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db_session),
) -> list[Review]:
    return ReviewRepository(db).list_pending(limit=limit)


@router.put("/reviews/{review_id}", response_model=Review, dependencies=_state_changing)
def moderate_review(
    review_id: str,
    body: ReviewModeration,
    db: Session = Depends(get_db_session),
) -> Review:
    review = ReviewRepository(db).set_approved(review_id, body.is_approved)
    if review is None:
        raise NotFoundError("Review not found")
    db.commit()
    return review


@router.delete("/reviews/{review_id}", dependencies=_state_changing)
def delete_review(review_id: str, db: Session = Depends(get_db_session)) -> dict[str, str]:
    if not ReviewRepository(db).delete(review_id):
        raise NotFoundError("Review not found")
    db.commit()
    return {"message": "Review deleted"}
