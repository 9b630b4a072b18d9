"""User database table model."""

from datetime import datetime

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    Personal columns hold ciphertext when field encryption is enabled, so
    they are plain text columns without length limits.
    """

    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    phone: str | None = None
    cpf: str | None = None
    birth_date: str | None = None
    gender: str | None = None
    is_admin: bool = False
    is_active: bool = True
    email_verified_at: datetime | None = None
    last_login_at: datetime | None = None
