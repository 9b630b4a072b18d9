"""Security helpers shared by the HTTP layer and services."""

import hashlib
import hmac
import re
import secrets
import time
import unicodedata

from fastapi import Request

from src.storefront.runtime.context import get_config

_FORWARDED_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        Hex encoded token, twice ``length`` characters long
    """
    return secrets.token_hex(length)


def _csrf_secret() -> bytes:
    config = get_config()
    secret = config.app.csrf_signing_secret or config.app.jwt_secret
    return secret.encode() if secret else b"dev-secret"


def generate_csrf_token(session_id: str, timestamp: int | None = None) -> str:
    """Generate CSRF token bound to session and time.

    Args:
        session_id: Session identifier to bind token to
        timestamp: Optional timestamp (defaults to current hour)

    Returns:
        HMAC-based CSRF token of the form ``<hour>:<hexdigest>``
    """
    if timestamp is None:
        timestamp = int(time.time() // 3600)

    message = f"{session_id}:{timestamp}"
    csrf_token = hmac.new(_csrf_secret(), message.encode(), hashlib.sha256).hexdigest()
    return f"{timestamp}:{csrf_token}"


def validate_csrf_token(
    session_id: str, csrf_token: str | None, max_age_hours: int | None = None
) -> bool:
    """Validate CSRF token for session.

    Args:
        session_id: Session identifier
        csrf_token: CSRF token to validate
        max_age_hours: Maximum age of token in hours (defaults to config)

    Returns:
        True if valid, False otherwise
    """
    if not csrf_token:
        return False

    if max_age_hours is None:
        max_age_hours = get_config().security.csrf_token_max_age_hours

    parts = csrf_token.split(":", 1)
    if len(parts) != 2:
        return False

    token_timestamp, token_value = parts
    try:
        timestamp = int(token_timestamp)
    except ValueError:
        return False

    current_hour = int(time.time() // 3600)
    if current_hour - timestamp > max_age_hours or timestamp > current_hour:
        return False

    expected_value = generate_csrf_token(session_id, timestamp).split(":", 1)[1]
    return hmac.compare_digest(expected_value, token_value)


def get_client_ip(request: Request) -> str:
    """Best-effort client address, preferring proxy headers."""
    for header in _FORWARDED_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def mask_cpf(value: str | None) -> str | None:
    if not value:
        return value
    digits = re.sub(r"\D", "", value)
    if len(digits) != 11:
        return "***.***.***-**"
    return f"{digits[:3]}.***.***-{digits[9:]}"


def mask_email(value: str | None) -> str | None:
    if not value:
        return value
    local, _, domain = value.partition("@")
    if not local or not domain:
        return "***@***.***"
    domain_name, _, tld = domain.partition(".")
    masked_local = local[0] + "*" * max(1, len(local) - 1)
    masked_domain = domain_name[:1] + "*" * max(1, len(domain_name) - 1)
    return f"{masked_local}@{masked_domain}.{tld}" if tld else f"{masked_local}@{masked_domain}"


def mask_phone(value: str | None) -> str | None:
    if not value:
        return value
    if len(value) < 10:
        return "*" * len(value)
    return value[:5] + "*" * max(1, len(value) - 9) + value[-4:]


def slugify(text: str) -> str:
    """Lower-case ASCII slug with single dashes."""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", ascii_text).strip("-").lower()
    return slug or secrets.token_hex(4)
