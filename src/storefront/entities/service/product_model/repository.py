"""ProductModel repository."""

from sqlmodel import Session, select

from src.storefront.entities.service.product_model.entity import ProductModel
from src.storefront.entities.service.product_model.table import ProductModelTable


class ProductModelRepository:
    """Data-access layer for product models."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_slug(self, slug: str) -> ProductModel | None:
        statement = select(ProductModelTable).where(
            (ProductModelTable.slug == slug)
            & (ProductModelTable.is_active == True)  # noqa: E712
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return ProductModel.model_validate(row, from_attributes=True)

    def create(self, model: ProductModel) -> ProductModel:
        row = ProductModelTable.model_validate(model.model_dump())
        self._session.add(row)
        self._session.flush()
        return ProductModel.model_validate(row, from_attributes=True)

    def list_active(self, brand_id: str | None = None) -> list[ProductModel]:
        statement = select(ProductModelTable).where(
            ProductModelTable.is_active == True  # noqa: E712
        )
        if brand_id:
            statement = statement.where(ProductModelTable.brand_id == brand_id)
        statement = statement.order_by(ProductModelTable.sort_order, ProductModelTable.name)
        return [
            ProductModel.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]
