"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache
from urllib.parse import urlparse

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.security import validate_csrf_token
from src.storefront.core.services.auth import (
    JwtService,
    LoginAttemptTracker,
    SessionClaims,
)
from src.storefront.core.services.email import EmailService
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.services.uploads import SecureUploadService
from src.storefront.entities.core.user import User, UserRepository
from src.storefront.runtime.context import get_config


def _app_deps(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_db_session(request: Request) -> Iterator[Session]:
    """One session per request; routers commit, the session is closed afterwards."""
    session = _app_deps(request).database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_security_logger(request: Request) -> SecurityLogger:
    return _app_deps(request).security_logger


def get_encryption(request: Request) -> FieldEncryptionService:
    return _app_deps(request).encryption


def get_jwt_service(request: Request) -> JwtService:
    return _app_deps(request).jwt_service


def get_login_attempts(request: Request) -> LoginAttemptTracker:
    return _app_deps(request).login_attempts


def get_email_service(request: Request) -> EmailService:
    return _app_deps(request).email_service


def get_payment_client(request: Request) -> MercadoPagoClient:
    return _app_deps(request).payment_client


def get_upload_service(request: Request) -> SecureUploadService:
    return _app_deps(request).upload_service


def get_user_repository(
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> UserRepository:
    return UserRepository(db, encryption)


def extract_token(request: Request) -> str | None:
    """Session token from the auth cookie, or from a Bearer header."""
    token = request.cookies.get(get_config().security.auth_cookie_name)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def _load_user(request: Request, claims: SessionClaims, users: UserRepository) -> User | None:
    user = users.get(claims.user_id)
    if user is None or not user.is_active:
        return None

    request.state.claims = claims
    request.state.uid = user.id
    return user


async def get_current_user(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> User:
    """Authenticate the request with the session token (cookie or Bearer)."""
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    claims = jwt_service.verify(token)
    user = _load_user(request, claims, users)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


async def get_optional_user(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> User | None:
    """Like ``get_current_user`` but anonymous requests (or bad tokens) yield ``None``."""
    token = extract_token(request)
    if not token:
        return None

    try:
        claims = jwt_service.verify(token)
    except HTTPException:
        return None
    return _load_user(request, claims, users)


async def require_admin(
    request: Request,
    user: User = Depends(get_current_user),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> User:
    """Only administrators get through; everyone else is logged and refused."""
    if not user.is_admin:
        security_logger.log(
            SecurityEventType.UNAUTHORIZED_ADMIN_ACCESS,
            SecurityLevel.WARNING,
            request,
            {"path": request.url.path},
            user_id=user.id,
            user_email=user.email,
        )
        raise HTTPException(status_code=403, detail="Administrator access required")

    security_logger.log(
        SecurityEventType.ADMIN_ACCESS,
        SecurityLevel.INFO,
        request,
        {"path": request.url.path},
        user_id=user.id,
        user_email=user.email,
    )
    return user


def auth_cookie_settings() -> dict[str, object]:
    """Attributes of the session cookie.

    ``secure`` is only forced in production so local development over plain
    HTTP keeps working.
    """
    config = get_config()
    return {
        "httponly": True,
        "secure": config.security.secure_cookies and config.app.environment == "production",
        "samesite": config.security.cookie_samesite,
        "max_age": config.jwt.expires_hours * 3600,
        "path": "/",
    }


@lru_cache(maxsize=50)
def normalize_origin(origin: str) -> tuple[str, str, int]:
    """Normalize an origin string into a tuple for comparison."""
    parsed = urlparse(origin)
    return (
        parsed.scheme.lower(),
        (parsed.hostname or "").lower(),
        parsed.port or (443 if parsed.scheme == "https" else 80),
    )


def get_allowed_origins() -> set[tuple[str, str, int]]:
    cfg = get_config()
    origins = {normalize_origin(origin) for origin in cfg.app.cors.origins if origin != "*"}
    origins.add(normalize_origin(cfg.app.public_url))
    return origins


def is_origin_allowed(origin: str) -> bool:
    return normalize_origin(origin) in get_allowed_origins()


def _is_enforced(request: Request) -> bool:
    if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
        return False
    return get_config().app.environment not in ("development", "test")


def enforce_origin(request: Request) -> None:
    """Origin/Referer allowlist for state-changing requests outside development."""
    if not _is_enforced(request):
        return

    origin = request.headers.get("origin")
    if origin:
        if origin == "null" or not is_origin_allowed(origin):
            raise HTTPException(status_code=403, detail="Origin not allowed")
        return

    referer = request.headers.get("referer")
    if not referer:
        raise HTTPException(status_code=403, detail="Missing or invalid Origin")
    if not is_origin_allowed(referer):
        raise HTTPException(status_code=403, detail="Referer origin not allowed")


def require_csrf(
    request: Request,
    jwt_service: JwtService = Depends(get_jwt_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> None:
    """Require a CSRF token bound to the caller's session on state-changing requests."""
    if not _is_enforced(request):
        return

    header_name = get_config().security.csrf_header_name
    csrf_header = request.headers.get(header_name)
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    claims = jwt_service.verify(token)
    if not validate_csrf_token(claims.sid, csrf_header):
        security_logger.log(
            SecurityEventType.CSRF_VIOLATION,
            SecurityLevel.WARNING,
            request,
            {"header_present": bool(csrf_header)},
            user_id=claims.user_id,
        )
        raise HTTPException(status_code=403, detail="Invalid CSRF token")
