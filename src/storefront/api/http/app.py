"""FastAPI application setup."""

import time
import uuid
from contextlib import asynccontextmanager

import redis.asyncio as redis_async
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import FileResponse, JSONResponse

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.api.http.middleware.limiter import (
    close_rate_limiter,
    configure_rate_limiter,
    redis_limit_exceeded,
)
from src.storefront.api.http.routers import (
    addresses,
    auth,
    catalog,
    checkout,
    contact,
    health,
    orders,
    tracking,
    webhooks,
)
from src.storefront.api.http.routers.admin import dashboard as admin_dashboard
from src.storefront.api.http.routers.admin import orders as admin_orders
from src.storefront.api.http.routers.admin import products as admin_products
from src.storefront.api.http.routers.admin import users as admin_users
from src.storefront.api.utils.app_startup import configure_logging
from src.storefront.core.errors import StorefrontError
from src.storefront.core.security import get_client_ip
from src.storefront.core.services.auth import JwtService, LoginAttemptTracker
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.email import EmailService
from src.storefront.core.services.encryption import DecryptionError, FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.core.services.uploads import SecureUploadService
from src.storefront.core.validation.schemas import SchemaValidationError
from src.storefront.runtime.context import get_config

# Load configuration
main_config = get_config()


# Initialize logging
configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-XSS-Protection", "1; mode=block")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault(
            "Permissions-Policy", "geolocation=(), microphone=(), camera=()"
        )
        # HSTS only in prod
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


app = FastAPI(
    title=main_config.app.name,
    lifespan=lifespan,
    docs_url=None if main_config.app.environment == "production" else "/docs",
    redoc_url=None if main_config.app.environment == "production" else "/redoc",
)

app.add_middleware(SecurityHeadersMiddleware)

# expose startup for tests
__all__ = ["app", "startup", "shutdown", "build_dependencies"]

# --- CORS configuration ---
if main_config.app.environment == "production" and "*" in main_config.app.cors.origins:
    raise RuntimeError(
        "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=main_config.app.cors.origins,
    allow_credentials=main_config.app.cors.allow_credentials,
    allow_methods=main_config.app.cors.allow_methods,
    allow_headers=main_config.app.cors.allow_headers,
)


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    # query strings may carry tokens, so only the path is logged
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": get_client_ip(request),
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


# --- Error mapping ---
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    level = "ERROR" if exc.status_code >= 500 else "INFO"
    logger.bind(status_code=exc.status_code, error_type=type(exc).__name__).log(
        level, "request.failed: {}", exc.message
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SchemaValidationError)
async def schema_validation_handler(request: Request, exc: SchemaValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400, content={"detail": "Validation failed", "errors": exc.errors}
    )


@app.exception_handler(DecryptionError)
async def decryption_error_handler(request: Request, exc: DecryptionError) -> JSONResponse:
    logger.bind(path=request.url.path).error("Stored value could not be decrypted")
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


# --- Router registration ---
API_PREFIX = "/api"

app.include_router(health.router)
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(catalog.router, prefix=API_PREFIX)
app.include_router(checkout.router, prefix=API_PREFIX)
app.include_router(orders.router, prefix=API_PREFIX)
app.include_router(addresses.router, prefix=API_PREFIX)
app.include_router(tracking.router, prefix=API_PREFIX)
app.include_router(contact.router, prefix=API_PREFIX)
app.include_router(webhooks.router, prefix=API_PREFIX)

# back-office; every admin router requires an administrator
app.include_router(admin_products.router, prefix=f"{API_PREFIX}/admin")
app.include_router(admin_orders.router, prefix=f"{API_PREFIX}/admin")
app.include_router(admin_users.router, prefix=f"{API_PREFIX}/admin")
app.include_router(admin_dashboard.router, prefix=f"{API_PREFIX}/admin")


@app.get(main_config.uploads.public_prefix.rstrip("/") + "/products/{path:path}")
async def serve_product_media(path: str, request: Request) -> FileResponse:
    """Serve uploaded product media; anything outside the uploads root is a 404."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    target = app_deps.upload_service.resolve_public_path(f"products/{path}")
    if target is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(target, headers={"Cache-Control": "public, max-age=86400"})


# --- Rate limiter setup ---
async def _initialize_rate_limiter() -> None:
    config = get_config()
    if not config.redis.enabled or config.redis.url is None:
        logger.info("Redis not configured; using in-memory rate limiter")
        configure_rate_limiter()
        return

    try:
        logger.info("Initializing FastAPI limiter with Redis: {}", config.redis.url)
        client = redis_async.from_url(
            config.redis.connection_string,
            encoding="utf-8",
            decode_responses=config.redis.decode_responses,
        )
        await FastAPILimiter.init(client, http_callback=redis_limit_exceeded)
        app.state.redis = client
        configure_rate_limiter(use_redis=True)
    except Exception:
        logger.exception("Failed to initialize FastAPI limiter with Redis")
        if config.app.environment == "production":
            raise
        logger.warning("Falling back to in-memory rate limiter")
        configure_rate_limiter()


# --- Lifecycle hooks ---
def build_dependencies() -> ApplicationDependencies:
    """Construct the process-wide services from the active configuration."""
    config = get_config()
    security_logger = SecurityLogger(config.security_log)
    return ApplicationDependencies(
        database_service=DbSessionService(),
        security_logger=security_logger,
        encryption=FieldEncryptionService(config.encryption),
        jwt_service=JwtService(),
        login_attempts=LoginAttemptTracker(
            config.security.max_login_attempts, config.security.lockout_minutes
        ),
        email_service=EmailService(config.email, base_url=config.app.public_url),
        payment_client=MercadoPagoClient(config.payment, base_url=config.app.public_url),
        upload_service=SecureUploadService(security_logger, config.uploads),
    )


async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    # tests install their own dependencies before the lifespan runs
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = build_dependencies()

    deps: ApplicationDependencies = app.state.app_dependencies
    if not deps.encryption.enabled:
        if config.app.environment == "production":
            raise RuntimeError("Field encryption key missing in production")
        logger.warning("Field encryption disabled; personal data will be stored in plaintext")
    if not config.app.jwt_secret and config.app.environment == "production":
        raise RuntimeError("JWT secret missing in production")

    await _initialize_rate_limiter()


async def shutdown() -> None:
    logger.info("Shutting down application")
    await close_rate_limiter()
    app_dependencies: ApplicationDependencies = app.state.app_dependencies
    removed = app_dependencies.security_logger.cleanup_old_events()
    logger.info("Dropped {} expired security events", removed)
    app_dependencies.database_service.dispose()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=main_config.app.host,
        port=main_config.app.port,
        access_log=False,  # We handle access logging in middleware
    )
