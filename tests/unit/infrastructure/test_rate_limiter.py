"""Unit tests for rate limiting infrastructure."""

import asyncio
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from starlette.datastructures import State
from starlette.responses import Response

from src.storefront.api.http.middleware.limiter import (
    DefaultLocalRateLimiter,
    configure_rate_limiter,
    get_rate_limiter,
    rate_limit,
)
from src.storefront.core.services.security_log import SecurityEventType, SecurityLogger
from src.storefront.runtime.config.config_data import ConfigData, RateLimiterConfig
from src.storefront.runtime.context import with_context


@pytest.fixture
def limited_app(security_logger: SecurityLogger) -> SimpleNamespace:
    """Just enough of an application for the limiter to log security events."""
    state = State()
    state.app_dependencies = SimpleNamespace(security_logger=security_logger)
    return SimpleNamespace(state=state)


@pytest.fixture(autouse=True)
def reset_limiter():
    configure_rate_limiter()
    yield
    configure_rate_limiter()


class TestDefaultLocalRateLimiter:
    """Test the in-memory rate limiter implementation."""

    @pytest.mark.asyncio
    async def test_allows_requests_within_limit(self, request_factory, limited_app):
        """Should allow requests that don't exceed the rate limit."""
        limiter = DefaultLocalRateLimiter(2, 10_000, per_endpoint=True, per_method=True)
        request = request_factory(app=limited_app)

        await limiter(request, Response())
        await limiter(request, Response())

    @pytest.mark.asyncio
    async def test_blocks_requests_when_limit_exceeded(
        self, request_factory, limited_app, security_logger: SecurityLogger
    ):
        """Should raise a 429 with Retry-After and record a security event."""
        limiter = DefaultLocalRateLimiter(2, 5_000, per_endpoint=True, per_method=True)
        request = request_factory(app=limited_app, path="/api/auth/login")

        for _ in range(2):
            await limiter(request, Response())

        with pytest.raises(HTTPException) as exc_info:
            await limiter(request, Response())

        assert exc_info.value.status_code == 429
        assert "too many" in exc_info.value.detail.lower()
        assert 1 <= int(exc_info.value.headers["Retry-After"]) <= 5
        events = security_logger.events(SecurityEventType.RATE_LIMIT_EXCEEDED)
        assert events[0].details["path"] == "/api/auth/login"

    @pytest.mark.asyncio
    async def test_window_expires(self, request_factory, limited_app):
        """Hits older than the window no longer count."""
        limiter = DefaultLocalRateLimiter(1, 100, per_endpoint=True, per_method=True)
        request = request_factory(app=limited_app)

        await limiter(request, Response())
        with pytest.raises(HTTPException):
            await limiter(request, Response())

        await asyncio.sleep(0.15)
        await limiter(request, Response())

    @pytest.mark.asyncio
    async def test_clients_tracked_separately(self, request_factory, limited_app):
        limiter = DefaultLocalRateLimiter(1, 10_000, per_endpoint=True, per_method=True)

        await limiter(request_factory(app=limited_app, client=("10.0.0.1", 1)), Response())
        await limiter(request_factory(app=limited_app, client=("10.0.0.2", 1)), Response())

    def test_key_composition(self, request_factory):
        per_route = DefaultLocalRateLimiter(1, 1_000, per_endpoint=True, per_method=True)
        global_only = DefaultLocalRateLimiter(1, 1_000, per_endpoint=False, per_method=False)
        request = request_factory(method="GET", path="/api/products/")

        assert per_route.make_key(request) == "ip:203.0.113.7:GET:/api/products"
        assert global_only.make_key(request) == "ip:203.0.113.7"

        request.state.uid = "user-1"
        assert global_only.make_key(request) == "user:user-1"

    @pytest.mark.asyncio
    async def test_cleanup_forgets_hits(self, request_factory, limited_app):
        limiter = DefaultLocalRateLimiter(1, 10_000, per_endpoint=True, per_method=True)
        request = request_factory(app=limited_app)
        await limiter(request, Response())

        await limiter.cleanup()

        await limiter(request, Response())


class TestRateLimitDependency:
    def test_limiters_are_cached_per_quota(self):
        first = get_rate_limiter(5, 1000)

        assert get_rate_limiter(5, 1000) is first
        assert get_rate_limiter(6, 1000) is not first

    def test_reconfigure_drops_cache(self):
        first = get_rate_limiter(5, 1000)

        configure_rate_limiter()

        assert get_rate_limiter(5, 1000) is not first

    @pytest.mark.asyncio
    async def test_disabled_limiter_lets_everything_through(self, request_factory, limited_app):
        guard = rate_limit(1, 60_000)
        request = request_factory(app=limited_app)

        for _ in range(5):
            await guard(request, Response())

    @pytest.mark.asyncio
    async def test_enabled_limiter_enforces_quota(self, request_factory, limited_app):
        guard = rate_limit(1, 60_000)
        request = request_factory(app=limited_app)

        with with_context(ConfigData(rate_limiter=RateLimiterConfig(enabled=True))):
            await guard(request, Response())
            with pytest.raises(HTTPException) as exc_info:
                await guard(request, Response())

        assert exc_info.value.status_code == 429
