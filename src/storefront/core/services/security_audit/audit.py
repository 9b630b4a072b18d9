"""On-demand security audit of the running store.

Each check returns an ``AuditResult``; ``SecurityAuditService.run`` gathers
them into a ``SecurityReport`` with an overall verdict and a pass score.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from enum import StrEnum

from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, func, select

from src.storefront.core.services.encryption import DecryptionError, FieldEncryptionService
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.entities.core.user import UserTable
from src.storefront.entities.service.order import OrderTable
from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config

BCRYPT_HASH_LENGTH = 60
TEST_EMAIL_DOMAINS = ("@test.com", "@example.com")
TEST_ORDER_PREFIX = "TEST"


class AuditStatus(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    WARNING = "WARNING"


class OverallStatus(StrEnum):
    SECURE = "SECURE"
    VULNERABLE = "VULNERABLE"
    NEEDS_ATTENTION = "NEEDS_ATTENTION"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AuditResult(BaseModel):
    test_name: str
    status: AuditStatus
    details: str
    recommendation: str | None = None
    timestamp: datetime = Field(default_factory=_now)


class SecurityReport(BaseModel):
    overall_status: OverallStatus
    score: int
    tests: list[AuditResult]
    timestamp: datetime = Field(default_factory=_now)

    @classmethod
    def from_results(cls, results: list[AuditResult]) -> "SecurityReport":
        """Any FAIL makes the store vulnerable; any WARNING needs attention."""
        statuses = [result.status for result in results]
        passed = statuses.count(AuditStatus.PASS)
        if AuditStatus.FAIL in statuses:
            overall = OverallStatus.VULNERABLE
        elif AuditStatus.WARNING in statuses:
            overall = OverallStatus.NEEDS_ATTENTION
        else:
            overall = OverallStatus.SECURE
        score = round(passed / len(results) * 100) if results else 0
        return cls(overall_status=overall, score=score, tests=results)


class SecurityAuditService:
    def __init__(
        self,
        session: Session,
        encryption: FieldEncryptionService,
        security_logger: SecurityLogger | None,
        config: ConfigData | None = None,
    ) -> None:
        self._session = session
        self._encryption = encryption
        self._security_logger = security_logger
        self._config = config or get_config()

    def run(self) -> SecurityReport:
        checks: list[Callable[[], AuditResult]] = [
            self.check_encryption,
            self.check_unencrypted_data,
            self.check_parameterized_queries,
            self.check_audit_logging,
            self.check_password_hashes,
            self.check_test_data,
            self.check_configuration,
        ]
        report = SecurityReport.from_results([check() for check in checks])
        logger.bind(score=report.score, overall=report.overall_status.value).info(
            "Security audit finished"
        )
        return report

    def check_encryption(self) -> AuditResult:
        name = "Encryption"
        if not self._encryption.enabled:
            return AuditResult(
                test_name=name,
                status=AuditStatus.FAIL,
                details="Field encryption is disabled",
                recommendation="Set encryption.key to a secret of at least 32 characters",
            )

        outcome = self._encryption.self_test()
        if outcome["passed"]:
            return AuditResult(
                test_name=name,
                status=AuditStatus.PASS,
                details="AES-256-GCM round trip and tamper detection working",
            )
        return AuditResult(
            test_name=name,
            status=AuditStatus.FAIL,
            details=f"Encryption self-test failed: {outcome}",
            recommendation="Check the encryption key configuration",
        )

    def check_unencrypted_data(self) -> AuditResult:
        name = "Unencrypted data"
        if not self._encryption.enabled:
            return AuditResult(
                test_name=name,
                status=AuditStatus.WARNING,
                details="Encryption disabled; personal data is stored in plaintext",
                recommendation="Enable field encryption",
            )

        try:
            values = list(
                self._session.exec(
                    select(OrderTable.customer_cpf).where(col(OrderTable.customer_cpf).is_not(None))
                ).all()
            )
            values += self._session.exec(
                select(UserTable.cpf).where(col(UserTable.cpf).is_not(None))
            ).all()
        except SQLAlchemyError as exc:
            logger.warning("Unencrypted data check failed: {}", exc)
            return AuditResult(
                test_name=name,
                status=AuditStatus.FAIL,
                details=f"Could not inspect stored data: {exc}",
                recommendation="Check database connectivity",
            )

        plaintext = sum(1 for value in values if value and not self._encryption.is_encrypted(value))
        if plaintext == 0:
            return AuditResult(
                test_name=name, status=AuditStatus.PASS, details="No plaintext CPF values stored"
            )
        return AuditResult(
            test_name=name,
            status=AuditStatus.WARNING,
            details=f"{plaintext} records hold a plaintext CPF",
            recommendation="Re-save the affected records so they are encrypted",
        )

    def check_parameterized_queries(self) -> AuditResult:
        name = "SQL injection protection"
        malicious = "'; DROP TABLE orders; --"
        try:
            self._session.exec(
                select(func.count()).select_from(OrderTable).where(OrderTable.id == malicious)
            ).one()
        except SQLAlchemyError as exc:
            return AuditResult(
                test_name=name,
                status=AuditStatus.FAIL,
                details=f"Bound query with hostile input failed: {exc}",
                recommendation="Make sure every query goes through bound parameters",
            )
        return AuditResult(
            test_name=name,
            status=AuditStatus.PASS,
            details="Queries use bound parameters",
        )

    def check_audit_logging(self) -> AuditResult:
        name = "Audit logging"
        if self._security_logger is None:
            return AuditResult(
                test_name=name,
                status=AuditStatus.FAIL,
                details="No security event logger configured",
                recommendation="Start the application with a security logger",
            )
        if not self._config.security_log.alerts_enabled:
            return AuditResult(
                test_name=name,
                status=AuditStatus.WARNING,
                details=f"Security logging active with {len(self._security_logger)} events, alerts disabled",
                recommendation="Enable security_log.alerts_enabled",
            )
        return AuditResult(
            test_name=name,
            status=AuditStatus.PASS,
            details=f"Security logging active with {len(self._security_logger)} events",
        )

    def check_password_hashes(self) -> AuditResult:
        name = "Password security"
        try:
            weak = self._session.exec(
                select(func.count())
                .select_from(UserTable)
                .where(func.length(UserTable.password_hash) < BCRYPT_HASH_LENGTH)
            ).one()
        except SQLAlchemyError as exc:
            logger.warning("Password hash check failed: {}", exc)
            return AuditResult(
                test_name=name,
                status=AuditStatus.FAIL,
                details=f"Could not inspect password hashes: {exc}",
                recommendation="Check the users table",
            )

        if weak == 0:
            return AuditResult(
                test_name=name, status=AuditStatus.PASS, details="All passwords are bcrypt hashed"
            )
        return AuditResult(
            test_name=name,
            status=AuditStatus.FAIL,
            details=f"{weak} users have a password that is not bcrypt hashed",
            recommendation="Force a password reset for the affected users",
        )

    def _is_test_email(self, stored: str | None) -> bool:
        try:
            email = self._encryption.decrypt(stored)
        except DecryptionError:
            return False
        return bool(email) and email.lower().endswith(TEST_EMAIL_DOMAINS)

    def check_test_data(self) -> AuditResult:
        name = "Test data"
        try:
            rows = self._session.exec(
                select(OrderTable.order_number, OrderTable.customer_email)
            ).all()
        except SQLAlchemyError as exc:
            logger.warning("Test data check failed: {}", exc)
            return AuditResult(
                test_name=name,
                status=AuditStatus.FAIL,
                details=f"Could not inspect orders: {exc}",
                recommendation="Check the orders table",
            )

        # emails are encrypted at rest so the domain filter runs here
        found = sum(
            1
            for number, email in rows
            if number.startswith(TEST_ORDER_PREFIX) or self._is_test_email(email)
        )
        if found == 0:
            return AuditResult(test_name=name, status=AuditStatus.PASS, details="No test orders found")
        return AuditResult(
            test_name=name,
            status=AuditStatus.WARNING,
            details=f"{found} test orders found",
            recommendation="Remove test orders from this environment",
        )

    def check_configuration(self) -> AuditResult:
        name = "Configuration"
        problems = []
        if not self._config.app.jwt_secret:
            problems.append("JWT secret not set")
        if self._config.app.environment == "production" and "*" in self._config.app.cors.origins:
            problems.append("CORS allows any origin in production")

        if not problems:
            return AuditResult(
                test_name=name, status=AuditStatus.PASS, details="Secrets and CORS configured"
            )
        return AuditResult(
            test_name=name,
            status=AuditStatus.FAIL,
            details="; ".join(problems),
            recommendation="Review the app section of config.yaml",
        )
