"""In-memory security event log.

Security relevant events (authentication, authorization, attack attempts,
uploads, order and payment changes) are kept in a bounded ring buffer for the
admin security audit and written to loguru as structured lines. A small set of
event types trigger an alert once they exceed a threshold within an hour.
"""

import threading
import uuid
from collections import Counter, deque
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any

from fastapi import Request
from loguru import logger
from pydantic import BaseModel, Field

from src.storefront.core.security import get_client_ip
from src.storefront.runtime.config.config_data import SecurityLogConfig

ALERT_WINDOW = timedelta(hours=1)


class SecurityEventType(StrEnum):
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PASSWORD_RESET = "PASSWORD_RESET"

    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    ADMIN_ACCESS = "ADMIN_ACCESS"
    UNAUTHORIZED_ADMIN_ACCESS = "UNAUTHORIZED_ADMIN_ACCESS"

    BRUTE_FORCE_ATTEMPT = "BRUTE_FORCE_ATTEMPT"
    SQL_INJECTION_ATTEMPT = "SQL_INJECTION_ATTEMPT"
    XSS_ATTEMPT = "XSS_ATTEMPT"
    PATH_TRAVERSAL_ATTEMPT = "PATH_TRAVERSAL_ATTEMPT"
    CSRF_VIOLATION = "CSRF_VIOLATION"

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    SENSITIVE_DATA_ACCESS = "SENSITIVE_DATA_ACCESS"

    VALIDATION_SUCCESS = "VALIDATION_SUCCESS"
    VALIDATION_FAILED = "VALIDATION_FAILED"

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    PRODUCT_CREATED = "PRODUCT_CREATED"
    PRODUCT_UPDATED = "PRODUCT_UPDATED"
    PRODUCT_DELETED = "PRODUCT_DELETED"
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_UPDATED = "ORDER_UPDATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"

    PAYMENT_PROCESSED = "PAYMENT_PROCESSED"
    PAYMENT_FAILED = "PAYMENT_FAILED"

    FILE_UPLOAD_SUCCESS = "FILE_UPLOAD_SUCCESS"
    FILE_UPLOAD_REJECTED = "FILE_UPLOAD_REJECTED"

    API_ERROR = "API_ERROR"


class SecurityLevel(StrEnum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)


_LEVEL_ORDER = [
    SecurityLevel.INFO,
    SecurityLevel.WARNING,
    SecurityLevel.ERROR,
    SecurityLevel.CRITICAL,
]

# Occurrences within ALERT_WINDOW that raise an alert
ALERT_THRESHOLDS: dict[SecurityEventType, int] = {
    SecurityEventType.LOGIN_FAILED: 5,
    SecurityEventType.BRUTE_FORCE_ATTEMPT: 3,
    SecurityEventType.SQL_INJECTION_ATTEMPT: 1,
    SecurityEventType.XSS_ATTEMPT: 1,
    SecurityEventType.PATH_TRAVERSAL_ATTEMPT: 1,
    SecurityEventType.UNAUTHORIZED_ADMIN_ACCESS: 1,
}

# loguru level used for each security level
_LOGURU_LEVELS = {
    SecurityLevel.INFO: "INFO",
    SecurityLevel.WARNING: "WARNING",
    SecurityLevel.ERROR: "ERROR",
    SecurityLevel.CRITICAL: "CRITICAL",
}


class SecurityEvent(BaseModel):
    id: str = Field(default_factory=lambda: f"sec_{uuid.uuid4().hex[:16]}")
    type: SecurityEventType
    level: SecurityLevel
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ip: str = "127.0.0.1"
    user_id: str | None = None
    user_email: str | None = None
    user_agent: str | None = None
    url: str | None = None
    method: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class SecurityLogger:
    """Bounded, thread-safe security event log."""

    def __init__(self, config: SecurityLogConfig | None = None) -> None:
        self._config = config or SecurityLogConfig()
        self._min_level = SecurityLevel(self._config.min_level)
        self._events: deque[SecurityEvent] = deque(maxlen=self._config.max_events)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._events)

    def log(
        self,
        event_type: SecurityEventType,
        level: SecurityLevel,
        request: Request | None = None,
        details: dict[str, Any] | None = None,
        user_id: str | None = None,
        user_email: str | None = None,
    ) -> SecurityEvent | None:
        """Record an event.

        Returns the stored event, or ``None`` when ``level`` is below the
        configured minimum.
        """
        if level.rank < self._min_level.rank:
            return None

        event = SecurityEvent(
            type=event_type,
            level=level,
            user_id=user_id,
            user_email=user_email,
            details=details or {},
        )
        if request is not None:
            event.ip = get_client_ip(request)
            event.user_agent = request.headers.get("user-agent")
            event.url = str(request.url)
            event.method = request.method

        with self._lock:
            self._events.append(event)

        logger.bind(
            security_event=event.type.value,
            event_id=event.id,
            client_ip=event.ip,
            user_id=event.user_id,
        ).log(
            _LOGURU_LEVELS[event.level],
            "security.{} {} {}",
            event.type.value,
            event.method or "-",
            event.url or "-",
        )

        if self._config.alerts_enabled:
            self._check_alert(event)
        return event

    def _check_alert(self, event: SecurityEvent) -> None:
        threshold = ALERT_THRESHOLDS.get(event.type)
        if threshold is None:
            return

        cutoff = event.timestamp - ALERT_WINDOW
        with self._lock:
            recent = [e for e in self._events if e.type == event.type and e.timestamp > cutoff]

        if len(recent) >= threshold:
            logger.bind(
                security_event=event.type.value,
                threshold=threshold,
                actual_count=len(recent),
                ips=sorted({e.ip for e in recent}),
            ).critical("security.alert threshold exceeded for {}", event.type.value)

    def log_login_failed(self, request: Request, email: str, reason: str) -> None:
        self.log(
            SecurityEventType.LOGIN_FAILED,
            SecurityLevel.WARNING,
            request,
            {"email": email, "reason": reason},
            user_email=email,
        )

    def log_attack_attempt(
        self,
        request: Request,
        attack_type: SecurityEventType,
        details: dict[str, Any],
        level: SecurityLevel = SecurityLevel.CRITICAL,
    ) -> SecurityEvent | None:
        return self.log(attack_type, level, request, details)

    def events(self, event_type: SecurityEventType | None = None) -> list[SecurityEvent]:
        with self._lock:
            snapshot = list(self._events)
        if event_type is None:
            return snapshot
        return [event for event in snapshot if event.type == event_type]

    def stats(self) -> dict[str, Any]:
        with self._lock:
            snapshot = list(self._events)
        return {
            "total_events": len(snapshot),
            "events_by_type": dict(Counter(event.type.value for event in snapshot)),
            "events_by_level": dict(Counter(event.level.value for event in snapshot)),
            "recent_activity": [event.model_dump(mode="json") for event in snapshot[-10:]],
        }

    def cleanup_old_events(self, now: datetime | None = None) -> int:
        """Drop events older than the retention period and return how many were removed."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self._config.retention_days)
        with self._lock:
            kept = [event for event in self._events if event.timestamp > cutoff]
            removed = len(self._events) - len(kept)
            self._events.clear()
            self._events.extend(kept)
        if removed:
            logger.info("Removed {} security events older than {}", removed, cutoff.isoformat())
        return removed

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
