"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RateLimiterConfig(BaseModel):
    """Rate limiter configuration model."""

    requests: int = Field(
        default=100, description="Number of requests allowed per window"
    )
    window_ms: int = Field(default=60000, description="Time window in milliseconds")
    enabled: bool = Field(default=True, description="Enable rate limiting")
    per_endpoint: bool = Field(
        default=True, description="Apply rate limiting per endpoint"
    )
    per_method: bool = Field(
        default=True, description="Apply rate limiting per HTTP method"
    )
    auth_requests: int = Field(
        default=10, description="Requests allowed per window on login/register"
    )
    checkout_requests: int = Field(
        default=20, description="Requests allowed per window on checkout"
    )


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=False, description="Enable Redis service")
    url: str | None = Field(default=None, description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )

    @computed_field
    @property
    def connection_string(self) -> str | None:
        """Construct the Redis connection string with password if provided."""
        if self.url and self.password and "@" not in self.url:
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default="logs/app.log", description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./storefront.db",
        description="Database connection URL",
    )
    environment_mode: str = Field(
        default="development", description="Environment mode: development or production"
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=50, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @computed_field
    @property
    def password(self) -> str | None:
        """
        Get the database password from the appropriate source.
        1. A mounted secrets file named by `password_file`
        2. The environment variable named by `password_env_var`
        3. Whatever the URL carries
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e

        if self.password_env_var:
            password = os.getenv(self.password_env_var)
            if password:
                return password
            if self.environment_mode == "production":
                raise ValueError(f"Environment variable {self.password_env_var} not set")

        from sqlalchemy.engine import make_url

        return make_url(self.url).password

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string with the resolved password."""
        from sqlalchemy.engine import make_url

        base_url = make_url(self.url)
        if base_url.drivername.startswith("sqlite"):
            return self.url

        if base_url.password and self.environment_mode == "production":
            logger.warning(
                "Database URL contains a password in production mode; "
                "consider using a secrets file or environment variable."
            )

        resolved_password = self.password
        if resolved_password and resolved_password != base_url.password:
            base_url = base_url.set(password=resolved_password)

        # render_as_string keeps the password, str() would mask it
        return base_url.render_as_string(hide_password=False)


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    name: str = Field(default="VemPraFonteSP", description="Store display name")
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    public_url: str = Field(
        default="http://localhost:3000",
        description="Public storefront URL used in emails and payment callbacks",
    )
    jwt_secret: str | None = Field(
        default=None, description="Secret for signing auth JWTs"
    )
    csrf_signing_secret: str | None = Field(
        default=None, description="Secret for signing CSRF tokens"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class JWTConfig(BaseModel):
    """Auth token configuration."""

    algorithm: str = Field(default="HS512", description="Signing algorithm")
    issuer: str = Field(default="vemprafonte", description="Issuer claim")
    audience: str = Field(default="vemprafonte-users", description="Audience claim")
    expires_hours: int = Field(default=24, description="Token lifetime in hours")
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")


class SecurityConfig(BaseModel):
    """Security configuration for authentication and cookies."""

    auth_cookie_name: str = Field(
        default="auth-token", description="Cookie that carries the auth JWT"
    )
    secure_cookies: bool = Field(
        default=True, description="Force secure cookies in production"
    )
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite cookie attribute"
    )
    csrf_header_name: str = Field(
        default="X-CSRF-Token", description="Header name for CSRF tokens"
    )
    csrf_token_max_age_hours: int = Field(
        default=12, description="Maximum age for CSRF tokens in hours"
    )
    max_login_attempts: int = Field(
        default=5, description="Failed logins allowed before lockout"
    )
    lockout_minutes: int = Field(
        default=15, description="Lockout duration after too many failed logins"
    )
    verification_token_hours: int = Field(
        default=24, description="Email verification token lifetime"
    )
    reset_token_hours: int = Field(
        default=1, description="Password reset token lifetime"
    )
    bcrypt_rounds: int = Field(
        default=12, ge=4, le=31, description="bcrypt cost factor"
    )


class EncryptionConfig(BaseModel):
    """Field-level encryption settings."""

    key: str | None = Field(
        default=None, description="Encryption passphrase, at least 32 characters"
    )
    user_id_salt: str | None = Field(
        default=None, description="HMAC key used to hash user identifiers"
    )
    iterations: int = Field(default=100_000, description="PBKDF2 iterations")

    @property
    def enabled(self) -> bool:
        return bool(self.key) and len(self.key) >= 32


class EmailConfig(BaseModel):
    """SMTP settings for transactional email."""

    enabled: bool = Field(default=False, description="Send mail through SMTP")
    host: str = Field(default="smtp.gmail.com", description="SMTP host")
    port: int = Field(default=587, description="SMTP port")
    username: str | None = Field(default=None, description="SMTP username")
    password: str | None = Field(default=None, description="SMTP password")
    from_address: str = Field(
        default="no-reply@localhost", description="Envelope sender address"
    )
    from_name: str = Field(default="VemPraFonteSP", description="Display name")
    contact_address: str | None = Field(
        default=None, description="Mailbox that receives contact form messages"
    )
    timeout: int = Field(default=30, description="SMTP timeout in seconds")
    validate_certs: bool = Field(default=True, description="Validate TLS certificates")


class PaymentConfig(BaseModel):
    """Hosted checkout (Mercado Pago) settings."""

    access_token: str | None = Field(
        default=None, description="Provider access token"
    )
    api_base: str = Field(
        default="https://api.mercadopago.com", description="Provider API base URL"
    )
    timeout: float = Field(default=15.0, description="HTTP timeout in seconds")
    statement_descriptor: str = Field(
        default="VEMPRAFONTE", description="Text on the card statement"
    )


class ShopConfig(BaseModel):
    """Pricing and order numbering rules."""

    currency: str = Field(default="BRL", description="ISO currency code")
    free_shipping_threshold: Decimal = Field(
        default=Decimal("199.00"),
        description="Subtotals above this ship for free",
    )
    shipping_cost: Decimal = Field(
        default=Decimal("15.90"), description="Flat shipping rate"
    )
    order_prefix: str = Field(default="VPF", description="Order number prefix")
    low_stock_threshold: int = Field(
        default=10, description="Stock at or below this is reported as low"
    )
    max_items_per_order: int = Field(default=100, description="Line item cap")


class UploadsConfig(BaseModel):
    """Media upload storage."""

    directory: str = Field(default="uploads", description="Root upload directory")
    public_prefix: str = Field(
        default="/uploads", description="URL prefix media is served from"
    )


class SecurityLogConfig(BaseModel):
    """In-memory security event log."""

    max_events: int = Field(default=1000, description="Ring buffer capacity")
    retention_days: int = Field(default=90, description="Days events are kept")
    min_level: Literal["INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Events below this level are dropped"
    )
    alerts_enabled: bool = Field(default=True, description="Emit threshold alerts")


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Rate limiter configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="Auth token configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
    encryption: EncryptionConfig = Field(
        default_factory=EncryptionConfig, description="Field encryption configuration"
    )
    email: EmailConfig = Field(
        default_factory=EmailConfig, description="SMTP configuration"
    )
    payment: PaymentConfig = Field(
        default_factory=PaymentConfig, description="Payment provider configuration"
    )
    shop: ShopConfig = Field(
        default_factory=ShopConfig, description="Pricing configuration"
    )
    uploads: UploadsConfig = Field(
        default_factory=UploadsConfig, description="Upload storage configuration"
    )
    security_log: SecurityLogConfig = Field(
        default_factory=SecurityLogConfig, description="Security event log"
    )
