"""User domain entity."""

from datetime import datetime
from typing import Any

from pydantic import Field

from src.storefront.entities.core._base import Entity


class User(Entity):
    """A customer or administrator account.

    ``cpf``, ``birth_date`` and ``gender`` hold plaintext here; the repository
    encrypts them on the way into the table and decrypts them on the way out.
    """

    name: str = Field(description="Full name")
    email: str = Field(description="Login email, unique")
    password_hash: str = Field(description="bcrypt hash", repr=False)
    phone: str | None = Field(default=None, description="Contact phone")
    cpf: str | None = Field(default=None, description="Taxpayer number")
    birth_date: str | None = Field(default=None, description="YYYY-MM-DD")
    gender: str | None = Field(default=None, description="M, F or Other")
    is_admin: bool = Field(default=False)
    is_active: bool = Field(default=True)
    email_verified_at: datetime | None = Field(default=None)
    last_login_at: datetime | None = Field(default=None)

    @property
    def email_verified(self) -> bool:
        return self.email_verified_at is not None

    def __eq__(self, other: Any) -> bool:
        """Compare users by identity and business attributes, ignoring timestamps."""
        if not isinstance(other, User):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.email == other.email
            and self.is_admin == other.is_admin
        )

    def __hash__(self) -> int:
        return hash((self.id, self.name, self.email, self.is_admin))
