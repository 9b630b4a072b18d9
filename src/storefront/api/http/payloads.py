"""Request body screening shared by the routers."""

from typing import Any, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel

from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.validation import (
    classify_attack,
    detect_sql_injection,
    detect_suspicious_data,
    validate_and_sanitize,
)
from src.storefront.core.validation.sanitize import iter_strings

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_ATTACK_EVENTS = {
    "sql_injection": SecurityEventType.SQL_INJECTION_ATTEMPT,
    "xss": SecurityEventType.XSS_ATTEMPT,
    "path_traversal": SecurityEventType.PATH_TRAVERSAL_ATTEMPT,
    "suspicious": SecurityEventType.SUSPICIOUS_ACTIVITY,
}


def reject_suspicious(
    request: Request,
    data: Any,
    security_logger: SecurityLogger,
    check_sql: bool = False,
    skip_fields: frozenset[str] = frozenset(),
) -> None:
    """Refuse a payload that trips the blacklist (and, optionally, the SQL patterns).

    Top-level ``skip_fields`` (passwords) are left out of the scan.

    Raises:
        HTTPException: 403 after logging the classified attempt
    """
    if isinstance(data, dict) and skip_fields:
        data = {key: value for key, value in data.items() if key not in skip_fields}

    suspicious, reasons = detect_suspicious_data(data)
    if check_sql and any(detect_sql_injection(value) for value in iter_strings(data)):
        suspicious = True
        reasons.append("SQL injection pattern")
    if not suspicious:
        return

    attack = classify_attack(data)
    security_logger.log_attack_attempt(
        request,
        _ATTACK_EVENTS[attack],
        {"reasons": reasons[:10], "path": request.url.path},
        level=SecurityLevel.CRITICAL if attack != "suspicious" else SecurityLevel.WARNING,
    )
    raise HTTPException(status_code=403, detail="Request contains disallowed content")


def screen(
    schema: type[SchemaT],
    request: Request,
    data: Any,
    security_logger: SecurityLogger,
    check_sql: bool = False,
    skip_fields: frozenset[str] = frozenset({"password", "confirm_password"}),
) -> SchemaT:
    """Blacklist check, then ``validate_and_sanitize``."""
    reject_suspicious(request, data, security_logger, check_sql=check_sql, skip_fields=skip_fields)
    return validate_and_sanitize(schema, data, request, security_logger)
