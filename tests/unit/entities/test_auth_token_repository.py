"""Unit tests for verification and reset tokens."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlmodel import Session

from src.storefront.entities.core.auth_token import AuthToken, AuthTokenRepository, TokenPurpose
from src.storefront.entities.core.user import User


@pytest.fixture
def tokens(session: Session) -> AuthTokenRepository:
    return AuthTokenRepository(session)


class TestAuthToken:
    def test_is_usable(self):
        now = datetime.now(UTC)
        token = AuthToken(
            user_id="u1", token="t", purpose=TokenPurpose.PASSWORD_RESET, expires_at=now + timedelta(hours=1)
        )

        assert token.is_usable(now)
        assert not token.is_usable(now + timedelta(hours=2))
        assert not token.model_copy(update={"used_at": now}).is_usable(now)

    def test_naive_expiry_treated_as_utc(self):
        expires = (datetime.now(UTC) + timedelta(minutes=5)).replace(tzinfo=None)
        token = AuthToken(user_id="u1", token="t", purpose=TokenPurpose.EMAIL_VERIFICATION, expires_at=expires)

        assert token.is_usable()


class TestAuthTokenRepository:
    def test_issue_and_find(self, tokens: AuthTokenRepository, customer: User):
        issued = tokens.issue(customer.id, TokenPurpose.EMAIL_VERIFICATION, timedelta(hours=24))

        found = tokens.find_usable(issued.token, TokenPurpose.EMAIL_VERIFICATION)
        assert found is not None
        assert found.user_id == customer.id
        assert tokens.find_usable(issued.token, TokenPurpose.PASSWORD_RESET) is None

    def test_new_token_invalidates_previous(self, tokens: AuthTokenRepository, customer: User):
        first = tokens.issue(customer.id, TokenPurpose.PASSWORD_RESET, timedelta(hours=1))
        second = tokens.issue(customer.id, TokenPurpose.PASSWORD_RESET, timedelta(hours=1))

        assert tokens.find_usable(first.token, TokenPurpose.PASSWORD_RESET) is None
        assert tokens.find_usable(second.token, TokenPurpose.PASSWORD_RESET) is not None

    def test_mark_used(self, tokens: AuthTokenRepository, customer: User):
        issued = tokens.issue(customer.id, TokenPurpose.PASSWORD_RESET, timedelta(hours=1))

        tokens.mark_used(issued.id)

        assert tokens.find_usable(issued.token, TokenPurpose.PASSWORD_RESET) is None

    def test_expired_token_unusable(self, tokens: AuthTokenRepository, customer: User):
        issued = tokens.issue(customer.id, TokenPurpose.PASSWORD_RESET, timedelta(seconds=-1))

        assert tokens.find_usable(issued.token, TokenPurpose.PASSWORD_RESET) is None

    def test_purge_expired(self, tokens: AuthTokenRepository, customer: User):
        tokens.issue(customer.id, TokenPurpose.PASSWORD_RESET, timedelta(hours=1))
        tokens.issue(customer.id, TokenPurpose.PASSWORD_RESET, timedelta(hours=1))
        live = tokens.issue(customer.id, TokenPurpose.EMAIL_VERIFICATION, timedelta(hours=1))

        assert tokens.purge_expired() == 1
        assert tokens.find_usable(live.token, TokenPurpose.EMAIL_VERIFICATION) is not None
