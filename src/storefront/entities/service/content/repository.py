"""Storefront content repositories."""

import json
from typing import Any

from sqlmodel import Session, col, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.service.content.entity import Banner, SiteSetting, Testimonial
from src.storefront.entities.service.content.table import (
    BannerTable,
    SiteSettingTable,
    TestimonialTable,
)


class TestimonialRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_active(self, featured_only: bool = False, limit: int = 10) -> list[Testimonial]:
        statement = select(TestimonialTable).where(
            TestimonialTable.is_active == True  # noqa: E712
        )
        if featured_only:
            statement = statement.where(TestimonialTable.is_featured == True)  # noqa: E712
        statement = statement.order_by(
            TestimonialTable.sort_order, col(TestimonialTable.created_at).desc()
        ).limit(limit)
        return [
            Testimonial.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def create(self, testimonial: Testimonial) -> Testimonial:
        row = TestimonialTable.model_validate(testimonial.model_dump())
        self._session.add(row)
        self._session.flush()
        return Testimonial.model_validate(row, from_attributes=True)


class BannerRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_by_position(self, position: str = "home") -> list[Banner]:
        statement = (
            select(BannerTable)
            .where((BannerTable.position == position) & (BannerTable.is_active == True))  # noqa: E712
            .order_by(BannerTable.sort_order)
        )
        return [
            Banner.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def create(self, banner: Banner) -> Banner:
        row = BannerTable.model_validate(banner.model_dump())
        self._session.add(row)
        self._session.flush()
        return Banner.model_validate(row, from_attributes=True)


class SiteSettingRepository:
    """Key/value settings with upsert semantics."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, key: str) -> SiteSettingTable | None:
        return self._session.exec(
            select(SiteSettingTable).where(SiteSettingTable.key == key)
        ).first()

    def get(self, key: str) -> SiteSetting | None:
        row = self._row(key)
        return None if row is None else SiteSetting.model_validate(row, from_attributes=True)

    def get_value(self, key: str, default: Any = None) -> Any:
        setting = self.get(key)
        return default if setting is None else setting.typed_value()

    def set(self, key: str, value: Any, description: str | None = None) -> SiteSetting:
        if isinstance(value, bool):
            text, value_type = ("true" if value else "false"), "boolean"
        elif isinstance(value, (int, float)):
            text, value_type = str(value), "number"
        elif isinstance(value, (dict, list)):
            text, value_type = json.dumps(value), "json"
        else:
            text, value_type = (None if value is None else str(value)), "string"

        row = self._row(key)
        if row is None:
            row = SiteSettingTable(key=key, value=text, value_type=value_type, description=description)
        else:
            row.value = text
            row.value_type = value_type
            if description is not None:
                row.description = description
            row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return SiteSetting.model_validate(row, from_attributes=True)

    def list_all(self) -> list[SiteSetting]:
        statement = select(SiteSettingTable).order_by(SiteSettingTable.key)
        return [
            SiteSetting.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]
