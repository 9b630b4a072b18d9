"""Brand repository."""

from sqlmodel import Session, select

from src.storefront.entities.service.brand.entity import Brand
from src.storefront.entities.service.brand.table import BrandTable


class BrandRepository:
    """Data-access layer for brands."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, brand_id: str) -> Brand | None:
        row = self._session.get(BrandTable, brand_id)
        if row is None:
            return None
        return Brand.model_validate(row, from_attributes=True)

    def get_by_slug(self, slug: str) -> Brand | None:
        statement = select(BrandTable).where(BrandTable.slug == slug)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Brand.model_validate(row, from_attributes=True)

    def create(self, brand: Brand) -> Brand:
        row = BrandTable.model_validate(brand.model_dump())
        self._session.add(row)
        self._session.flush()
        return Brand.model_validate(row, from_attributes=True)

    def list_all(self, include_inactive: bool = False) -> list[Brand]:
        statement = select(BrandTable)
        if not include_inactive:
            statement = statement.where(BrandTable.is_active == True)  # noqa: E712
        statement = statement.order_by(BrandTable.name)
        return [
            Brand.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]
