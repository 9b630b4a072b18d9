"""Auth token repository."""

from datetime import timedelta

from sqlmodel import Session, col, select

from src.storefront.core.security import generate_secure_token
from src.storefront.entities.core._base import utcnow
from src.storefront.entities.core.auth_token.entity import AuthToken, TokenPurpose
from src.storefront.entities.core.auth_token.table import AuthTokenTable


class AuthTokenRepository:
    """Data-access layer for verification and reset tokens."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def issue(self, user_id: str, purpose: TokenPurpose, ttl: timedelta) -> AuthToken:
        """Create a fresh token, invalidating earlier unused ones of the same purpose."""
        previous = select(AuthTokenTable).where(
            (AuthTokenTable.user_id == user_id)
            & (AuthTokenTable.purpose == purpose.value)
            & (col(AuthTokenTable.used_at).is_(None))
        )
        now = utcnow()
        for row in self._session.exec(previous).all():
            row.used_at = now
            self._session.add(row)

        row = AuthTokenTable(
            user_id=user_id,
            token=generate_secure_token(),
            purpose=purpose.value,
            expires_at=now + ttl,
        )
        self._session.add(row)
        self._session.flush()
        return AuthToken.model_validate(row, from_attributes=True)

    def find_usable(self, token: str, purpose: TokenPurpose) -> AuthToken | None:
        statement = select(AuthTokenTable).where(
            (AuthTokenTable.token == token) & (AuthTokenTable.purpose == purpose.value)
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        entity = AuthToken.model_validate(row, from_attributes=True)
        return entity if entity.is_usable() else None

    def mark_used(self, token_id: str) -> None:
        row = self._session.get(AuthTokenTable, token_id)
        if row is None:
            raise ValueError(f"Token {token_id} not found")
        row.used_at = utcnow()
        self._session.add(row)
        self._session.flush()

    def purge_expired(self) -> int:
        """Delete expired or used tokens and return how many were removed."""
        statement = select(AuthTokenTable).where(
            (col(AuthTokenTable.expires_at) < utcnow())
            | (col(AuthTokenTable.used_at).is_not(None))
        )
        rows = self._session.exec(statement).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)
