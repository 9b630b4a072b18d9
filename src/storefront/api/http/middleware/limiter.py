"""Rate limiting helpers used by the HTTP layer.

``rate_limit(requests, window_ms)`` returns a dependency. Which limiter backs
it is decided at startup: ``fastapi-limiter`` when Redis is reachable, the
in-process ``DefaultLocalRateLimiter`` otherwise.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any

from fastapi import HTTPException, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from loguru import logger

from src.storefront.core.security import get_client_ip
from src.storefront.core.services.security_log import SecurityEventType, SecurityLevel
from src.storefront.runtime.context import get_config

RateLimiterType = Callable[[Request, Response], Awaitable[Any]]
RateLimiterFactory = Callable[[int, int, bool, bool], RateLimiterType]

_rate_limiter_factory: RateLimiterFactory | None = None
_local_limiters: list[DefaultLocalRateLimiter] = []
_factory_version: int = 0


def record_rate_limit_exceeded(request: Request, limit: int, window_ms: int) -> None:
    """Write a RATE_LIMIT_EXCEEDED security event when the app exposes a logger."""
    app_deps = getattr(request.app.state, "app_dependencies", None)
    if app_deps is None:
        return
    app_deps.security_logger.log(
        SecurityEventType.RATE_LIMIT_EXCEEDED,
        SecurityLevel.WARNING,
        request,
        {"limit": limit, "window_ms": window_ms, "path": request.url.path},
    )


async def redis_limit_exceeded(request: Request, response: Response, pexpire: int) -> None:
    """``http_callback`` for fastapi-limiter; logs the event and answers 429."""
    record_rate_limit_exceeded(request, limit=-1, window_ms=pexpire)
    raise HTTPException(
        status_code=429,
        detail="Too Many Requests",
        headers={"Retry-After": str(math.ceil(pexpire / 1000))},
    )


class DefaultLocalRateLimiter:
    """Sliding-window limiter kept in process memory."""

    def __init__(
        self, times: int, milliseconds: int, per_endpoint: bool, per_method: bool
    ) -> None:
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._times = times
        self._window_ms = milliseconds
        self._seconds = milliseconds / 1000
        self._per_endpoint = per_endpoint
        self._per_method = per_method
        self._last_cleanup = time.monotonic()
        self._cleanup_interval = 60.0

    async def __call__(self, request: Request, response: Response) -> None:
        key = self.make_key(request)
        retry_after = await self._throttle(key)
        if retry_after is not None:
            record_rate_limit_exceeded(request, self._times, self._window_ms)
            raise HTTPException(
                status_code=429,
                detail="Too Many Requests",
                headers={"Retry-After": str(retry_after)},
            )

    def make_key(self, request: Request) -> str:
        uid = getattr(request.state, "uid", None)
        parts = [f"user:{uid}" if uid is not None else f"ip:{get_client_ip(request)}"]
        if self._per_method:
            parts.append(request.method)
        if self._per_endpoint:
            route = request.scope.get("route")
            template = getattr(route, "path", None)
            parts.append((template or request.url.path).rstrip("/"))
        return ":".join(parts)

    def _cleanup_old_keys(self, now: float) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        for key in [key for key, hits in self._hits.items() if not hits or hits[-1] <= now - self._seconds]:
            del self._hits[key]

    async def _throttle(self, key: str) -> int | None:
        """Record a hit; returns the seconds to wait when the window is full."""
        now = time.monotonic()
        window_start = now - self._seconds
        async with self._lock:
            self._cleanup_old_keys(now)
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()
            if len(hits) >= self._times:
                return max(1, math.ceil(self._seconds - (now - hits[0])))
            hits.append(now)
        return None

    async def cleanup(self) -> None:
        async with self._lock:
            tracked = len(self._hits)
            self._hits.clear()
        logger.debug("Cleaned up local rate limiter with {} tracked keys", tracked)


def _local_factory(
    times: int, milliseconds: int, per_endpoint: bool, per_method: bool
) -> RateLimiterType:
    limiter = DefaultLocalRateLimiter(times, milliseconds, per_endpoint, per_method)
    _local_limiters.append(limiter)
    return limiter


def _redis_factory(
    times: int, milliseconds: int, per_endpoint: bool, per_method: bool
) -> RateLimiterType:
    # fastapi-limiter keys on the route already
    return RateLimiter(times=times, milliseconds=milliseconds)


def configure_rate_limiter(use_redis: bool = False) -> None:
    """Select the limiter implementation and drop cached instances."""
    global _rate_limiter_factory, _factory_version

    _create_rate_limiter.cache_clear()
    _factory_version += 1
    if use_redis:
        logger.info("Using Redis-backed rate limiter from fastapi-limiter")
        _rate_limiter_factory = _redis_factory
    else:
        logger.info("Using local in-memory rate limiter")
        _rate_limiter_factory = _local_factory


@lru_cache(maxsize=100)
def _create_rate_limiter(
    requests: int, window_ms: int, per_endpoint: bool, per_method: bool, factory_version: int
) -> RateLimiterType:
    if _rate_limiter_factory is None:
        raise RuntimeError("Rate limiter not configured")
    return _rate_limiter_factory(requests, window_ms, per_endpoint, per_method)


def get_rate_limiter(requests: int | None = None, window_ms: int | None = None) -> RateLimiterType:
    if _rate_limiter_factory is None:
        configure_rate_limiter()
    config = get_config().rate_limiter
    return _create_rate_limiter(
        requests if requests is not None else config.requests,
        window_ms if window_ms is not None else config.window_ms,
        config.per_endpoint,
        config.per_method,
        _factory_version,
    )


def rate_limit(requests: int | None = None, window_ms: int | None = None) -> RateLimiterType:
    """Dependency enforcing a request quota; defaults come from the config."""

    async def dependency(request: Request, response: Response) -> None:
        if not get_config().rate_limiter.enabled:
            return
        limiter = get_rate_limiter(requests, window_ms)
        await limiter(request, response)

    return dependency


async def close_rate_limiter() -> None:
    """Release limiter state and the fastapi-limiter Redis connection if one was opened."""
    global _rate_limiter_factory

    _create_rate_limiter.cache_clear()
    for limiter in _local_limiters:
        await limiter.cleanup()
    _local_limiters.clear()

    if _rate_limiter_factory is _redis_factory and FastAPILimiter.redis is not None:
        await FastAPILimiter.close()
        logger.info("Closed FastAPILimiter Redis connection")

    _rate_limiter_factory = None
