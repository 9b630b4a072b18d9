"""Email verification and password reset tokens."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import Field

from src.storefront.entities.core._base import Entity


class TokenPurpose(StrEnum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class AuthToken(Entity):
    user_id: str
    token: str = Field(repr=False)
    purpose: TokenPurpose
    expires_at: datetime
    used_at: datetime | None = None

    def is_usable(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return self.used_at is None and expires_at > now
