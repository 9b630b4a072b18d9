"""Security checks runnable outside the HTTP server."""

import typer
from rich.console import Console
from rich.table import Table

from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.security_audit import AuditStatus, SecurityAuditService
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.runtime.context import get_config

console = Console()

security_app = typer.Typer(help="Encryption status and security audit")

_STATUS_STYLE = {
    AuditStatus.PASS: "green",
    AuditStatus.WARNING: "yellow",
    AuditStatus.FAIL: "red",
}


@security_app.command("encryption-status")
def encryption_status() -> None:
    """Show the field encryption configuration and run its self-test."""
    encryption = FieldEncryptionService(get_config().encryption)
    for key, value in encryption.status().items():
        console.print(f"[cyan]{key}[/cyan]: {value}")

    if not encryption.enabled:
        console.print("[red]❌ Encryption disabled[/red]")
        raise typer.Exit(code=1)

    outcome = encryption.self_test()
    if not outcome["passed"]:
        console.print(f"[red]❌ Self-test failed: {outcome}[/red]")
        raise typer.Exit(code=1)
    console.print("[green]✅ Self-test passed[/green]")


@security_app.command("audit")
def audit() -> None:
    """Run the security audit against the configured database."""
    config = get_config()
    service = DbSessionService()
    try:
        with service.session_scope() as session:
            report = SecurityAuditService(
                session,
                FieldEncryptionService(config.encryption),
                SecurityLogger(config.security_log),
                config,
            ).run()
    finally:
        service.dispose()

    table = Table(title=f"Security audit: {report.overall_status.value} ({report.score}%)")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    table.add_column("Recommendation", style="dim")
    for result in report.tests:
        style = _STATUS_STYLE[result.status]
        table.add_row(
            result.test_name,
            f"[{style}]{result.status.value}[/{style}]",
            result.details,
            result.recommendation or "",
        )
    console.print(table)

    if report.overall_status == "VULNERABLE":
        raise typer.Exit(code=1)
