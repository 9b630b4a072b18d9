"""Auth token database table model."""

from datetime import datetime

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class AuthTokenTable(EntityTable, table=True):
    user_id: str = Field(foreign_key="usertable.id", index=True)
    token: str = Field(index=True, unique=True)
    purpose: str = Field(index=True)
    expires_at: datetime
    used_at: datetime | None = None
