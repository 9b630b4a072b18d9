"""Category and subcategory repositories."""

from sqlmodel import Session, select

from src.storefront.entities.service.category.entity import Category, Subcategory
from src.storefront.entities.service.category.table import (
    CategoryTable,
    SubcategoryTable,
)


class CategoryRepository:
    """Data-access layer for categories."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, category_id: str) -> Category | None:
        row = self._session.get(CategoryTable, category_id)
        if row is None:
            return None
        return Category.model_validate(row, from_attributes=True)

    def get_by_slug(self, slug: str) -> Category | None:
        row = self._session.exec(
            select(CategoryTable).where(CategoryTable.slug == slug)
        ).first()
        if row is None:
            return None
        return Category.model_validate(row, from_attributes=True)

    def create(self, category: Category) -> Category:
        row = CategoryTable.model_validate(category.model_dump())
        self._session.add(row)
        self._session.flush()
        return Category.model_validate(row, from_attributes=True)

    def list_all(self, include_inactive: bool = False) -> list[Category]:
        statement = select(CategoryTable)
        if not include_inactive:
            statement = statement.where(CategoryTable.is_active == True)  # noqa: E712
        statement = statement.order_by(CategoryTable.sort_order, CategoryTable.name)
        return [
            Category.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]


class SubcategoryRepository:
    """Data-access layer for subcategories."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_slug(self, slug: str) -> Subcategory | None:
        row = self._session.exec(
            select(SubcategoryTable).where(SubcategoryTable.slug == slug)
        ).first()
        if row is None:
            return None
        return Subcategory.model_validate(row, from_attributes=True)

    def create(self, subcategory: Subcategory) -> Subcategory:
        row = SubcategoryTable.model_validate(subcategory.model_dump())
        self._session.add(row)
        self._session.flush()
        return Subcategory.model_validate(row, from_attributes=True)

    def list_for_category(self, category_id: str) -> list[Subcategory]:
        statement = (
            select(SubcategoryTable)
            .where(
                (SubcategoryTable.category_id == category_id)
                & (SubcategoryTable.is_active == True)  # noqa: E712
            )
            .order_by(SubcategoryTable.sort_order, SubcategoryTable.name)
        )
        return [
            Subcategory.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]
