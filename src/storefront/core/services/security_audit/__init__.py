"""Security audit checks and report."""

from .audit import (
    AuditResult,
    AuditStatus,
    OverallStatus,
    SecurityAuditService,
    SecurityReport,
)

__all__ = [
    "AuditResult",
    "AuditStatus",
    "OverallStatus",
    "SecurityAuditService",
    "SecurityReport",
]
