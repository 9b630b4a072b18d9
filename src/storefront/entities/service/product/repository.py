"""Product, media and variant repositories."""

from decimal import Decimal

from sqlmodel import Session, col, func, or_, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.service.category.table import SubcategoryTable
from src.storefront.entities.service.product.entity import (
    ColorCount,
    Product,
    ProductFilters,
    ProductImage,
    ProductVariant,
    ProductVideo,
)
from src.storefront.entities.service.product.table import (
    ProductImageTable,
    ProductTable,
    ProductVariantTable,
    ProductVideoTable,
)


def _to_product(row: ProductTable) -> Product:
    return Product.model_validate(row, from_attributes=True)


class ProductRepository:
    """Data-access layer for products."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, product_id: str, active_only: bool = False) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None or (active_only and not row.is_active):
            return None
        return _to_product(row)

    def get_many(self, product_ids: list[str], active_only: bool = True) -> dict[str, Product]:
        if not product_ids:
            return {}
        statement = select(ProductTable).where(col(ProductTable.id).in_(product_ids))
        if active_only:
            statement = statement.where(ProductTable.is_active == True)  # noqa: E712
        return {row.id: _to_product(row) for row in self._session.exec(statement).all()}

    def get_by_slug(self, slug: str, active_only: bool = True) -> Product | None:
        statement = select(ProductTable).where(ProductTable.slug == slug)
        if active_only:
            statement = statement.where(ProductTable.is_active == True)  # noqa: E712
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return _to_product(row)

    def slug_exists(self, slug: str) -> bool:
        statement = select(ProductTable.id).where(ProductTable.slug == slug)
        return self._session.exec(statement).first() is not None

    def create(self, product: Product) -> Product:
        row = ProductTable.model_validate(product.model_dump())
        self._session.add(row)
        self._session.flush()
        return _to_product(row)

    def update(self, product: Product) -> Product:
        row = self._session.get(ProductTable, product.id)
        if row is None:
            raise ValueError(f"Product {product.id} not found")

        for key, value in product.model_dump(exclude={"id", "created_at", "updated_at"}).items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return _to_product(row)

    def deactivate(self, product_id: str) -> bool:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False
        row.is_active = False
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return True

    def list_filtered(self, filters: ProductFilters | None = None) -> list[Product]:
        filters = filters or ProductFilters()
        statement = select(ProductTable)

        if not filters.include_inactive:
            statement = statement.where(ProductTable.is_active == True)  # noqa: E712
        if filters.brand_id:
            statement = statement.where(ProductTable.brand_id == filters.brand_id)
        if filters.category_id:
            statement = statement.where(ProductTable.category_id == filters.category_id)
        if filters.subcategory_id:
            statement = statement.where(ProductTable.subcategory_id == filters.subcategory_id)
        if filters.subcategory_slug:
            statement = statement.join(
                SubcategoryTable, SubcategoryTable.id == ProductTable.subcategory_id
            ).where(SubcategoryTable.slug == filters.subcategory_slug)
        if filters.model_id:
            statement = statement.where(ProductTable.model_id == filters.model_id)
        if filters.color:
            statement = statement.where(ProductTable.color == filters.color)
        if filters.min_price is not None:
            statement = statement.where(ProductTable.price >= filters.min_price)
        if filters.max_price is not None:
            statement = statement.where(ProductTable.price <= filters.max_price)
        if filters.is_featured is not None:
            statement = statement.where(ProductTable.is_featured == filters.is_featured)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            statement = statement.where(
                or_(
                    col(ProductTable.name).ilike(pattern),
                    col(ProductTable.description).ilike(pattern),
                    col(ProductTable.color).ilike(pattern),
                )
            )

        statement = (
            statement.order_by(
                col(ProductTable.is_featured).desc(), col(ProductTable.created_at).desc()
            )
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return [_to_product(row) for row in self._session.exec(statement).all()]

    def search(self, term: str, limit: int = 20) -> list[Product]:
        return self.list_filtered(ProductFilters(search=term, limit=limit))

    def list_similar(self, product: Product, limit: int = 4) -> list[Product]:
        """Other active products from the same subcategory, or category as fallback."""
        statement = select(ProductTable).where(
            (ProductTable.id != product.id) & (ProductTable.is_active == True)  # noqa: E712
        )
        if product.subcategory_id:
            statement = statement.where(ProductTable.subcategory_id == product.subcategory_id)
        elif product.category_id:
            statement = statement.where(ProductTable.category_id == product.category_id)
        else:
            return []
        statement = statement.order_by(col(ProductTable.created_at).desc()).limit(limit)
        return [_to_product(row) for row in self._session.exec(statement).all()]

    def list_colors(self) -> list[ColorCount]:
        statement = (
            select(ProductTable.color, ProductTable.color_hex, func.count(ProductTable.id))
            .where(
                (col(ProductTable.color).is_not(None))
                & (ProductTable.is_active == True)  # noqa: E712
            )
            .group_by(ProductTable.color, ProductTable.color_hex)
            .order_by(ProductTable.color)
        )
        return [
            ColorCount(color=color, color_hex=color_hex, product_count=count)
            for color, color_hex, count in self._session.exec(statement).all()
        ]

    def count(self, active_only: bool = True) -> int:
        statement = select(func.count()).select_from(ProductTable)
        if active_only:
            statement = statement.where(ProductTable.is_active == True)  # noqa: E712
        return self._session.exec(statement).one()

    def stock_summary(self, low_stock_threshold: int) -> dict[str, Decimal | int]:
        active = ProductTable.is_active == True  # noqa: E712
        total_stock, average_price = self._session.exec(
            select(
                func.coalesce(func.sum(ProductTable.stock_quantity), 0),
                func.coalesce(func.avg(ProductTable.price), 0),
            ).where(active)
        ).one()
        low_stock = self._session.exec(
            select(func.count())
            .select_from(ProductTable)
            .where(active & (ProductTable.stock_quantity <= low_stock_threshold))
        ).one()
        return {
            "total_stock": int(total_stock),
            "average_price": Decimal(str(average_price)).quantize(Decimal("0.01")),
            "low_stock": int(low_stock),
        }


class ProductMediaRepository:
    """Data-access layer for product images and videos."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_images(self, product_id: str) -> list[ProductImage]:
        statement = (
            select(ProductImageTable)
            .where(ProductImageTable.product_id == product_id)
            .order_by(col(ProductImageTable.is_primary).desc(), ProductImageTable.sort_order)
        )
        return [
            ProductImage.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def list_videos(self, product_id: str) -> list[ProductVideo]:
        statement = (
            select(ProductVideoTable)
            .where(ProductVideoTable.product_id == product_id)
            .order_by(col(ProductVideoTable.is_primary).desc(), ProductVideoTable.sort_order)
        )
        return [
            ProductVideo.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def primary_image_url(self, product_id: str) -> str | None:
        images = self.list_images(product_id)
        return images[0].url if images else None

    def add_image(self, image: ProductImage) -> ProductImage:
        if image.is_primary:
            self._clear_primary(ProductImageTable, image.product_id)
        row = ProductImageTable.model_validate(image.model_dump())
        self._session.add(row)
        self._session.flush()
        return ProductImage.model_validate(row, from_attributes=True)

    def add_video(self, video: ProductVideo) -> ProductVideo:
        if video.is_primary:
            self._clear_primary(ProductVideoTable, video.product_id)
        row = ProductVideoTable.model_validate(video.model_dump())
        self._session.add(row)
        self._session.flush()
        return ProductVideo.model_validate(row, from_attributes=True)

    def get_image(self, image_id: str) -> ProductImage | None:
        row = self._session.get(ProductImageTable, image_id)
        return None if row is None else ProductImage.model_validate(row, from_attributes=True)

    def get_video(self, video_id: str) -> ProductVideo | None:
        row = self._session.get(ProductVideoTable, video_id)
        return None if row is None else ProductVideo.model_validate(row, from_attributes=True)

    def delete_image(self, image_id: str) -> bool:
        return self._delete(ProductImageTable, image_id)

    def delete_video(self, video_id: str) -> bool:
        return self._delete(ProductVideoTable, video_id)

    def _delete(self, table: type[ProductImageTable] | type[ProductVideoTable], row_id: str) -> bool:
        row = self._session.get(table, row_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def _clear_primary(
        self, table: type[ProductImageTable] | type[ProductVideoTable], product_id: str
    ) -> None:
        statement = select(table).where(
            (table.product_id == product_id) & (table.is_primary == True)  # noqa: E712
        )
        for row in self._session.exec(statement).all():
            row.is_primary = False
            self._session.add(row)


class ProductVariantRepository:
    """Data-access layer for product sizes."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, variant_id: str) -> ProductVariant | None:
        row = self._session.get(ProductVariantTable, variant_id)
        return None if row is None else ProductVariant.model_validate(row, from_attributes=True)

    def list_for_product(self, product_id: str) -> list[ProductVariant]:
        statement = (
            select(ProductVariantTable)
            .where(
                (ProductVariantTable.product_id == product_id)
                & (ProductVariantTable.is_active == True)  # noqa: E712
            )
            .order_by(ProductVariantTable.size)
        )
        return [
            ProductVariant.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def create(self, variant: ProductVariant) -> ProductVariant:
        row = ProductVariantTable.model_validate(variant.model_dump())
        self._session.add(row)
        self._session.flush()
        return ProductVariant.model_validate(row, from_attributes=True)
