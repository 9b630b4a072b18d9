"""Security event logging."""

from .security_logger import (
    ALERT_THRESHOLDS,
    SecurityEvent,
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)

__all__ = [
    "ALERT_THRESHOLDS",
    "SecurityEvent",
    "SecurityEventType",
    "SecurityLevel",
    "SecurityLogger",
]
