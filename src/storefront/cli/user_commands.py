"""Account management commands."""

from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.table import Table

from src.storefront.core.security import mask_email
from src.storefront.core.services.auth import hash_password
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.validation import UserRegistrationSchema
from src.storefront.core.validation.schemas import SchemaValidationError, validate_and_sanitize
from src.storefront.entities.core.user import User, UserRepository
from src.storefront.runtime.context import get_config

console = Console()

users_app = typer.Typer(help="Manage customer and administrator accounts")


@users_app.command("create-admin")
def create_admin(
    email: str = typer.Option(..., "--email", "-e", help="Login email"),
    name: str = typer.Option(..., "--name", "-n", help="Full name"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Create a verified administrator, or promote an existing account."""
    config = get_config()
    try:
        data = validate_and_sanitize(
            UserRegistrationSchema,
            {"name": name, "email": email, "password": password, "confirm_password": password},
        )
    except SchemaValidationError as e:
        for message in e.errors:
            console.print(f"[red]❌ {message}[/red]")
        raise typer.Exit(code=1) from e

    service = DbSessionService()
    try:
        with service.session_scope() as session:
            users = UserRepository(session, FieldEncryptionService(config.encryption))
            existing = users.get_by_email(data.email)
            if existing is not None:
                users.update(existing.model_copy(update={"is_admin": True, "is_active": True}))
                console.print(f"[yellow]Promoted existing user {data.email} to admin[/yellow]")
                return

            user = users.create(
                User(
                    name=data.name,
                    email=data.email,
                    password_hash=hash_password(data.password, config.security.bcrypt_rounds),
                    is_admin=True,
                    email_verified_at=datetime.now(timezone.utc),
                )
            )
            console.print(f"[green]✅ Created admin {user.email} ({user.id})[/green]")
    finally:
        service.dispose()


@users_app.command("list")
def list_users(
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum number of users to show"),
    admins_only: bool = typer.Option(False, "--admins", help="Only show administrators"),
) -> None:
    """List accounts with masked emails."""
    config = get_config()
    service = DbSessionService()
    try:
        with service.session_scope() as session:
            users = UserRepository(session, FieldEncryptionService(config.encryption)).list_all(
                limit=limit
            )
    finally:
        service.dispose()

    if admins_only:
        users = [user for user in users if user.is_admin]
    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Email", style="blue")
    table.add_column("Admin", style="magenta")
    table.add_column("Active", style="yellow")
    table.add_column("Verified", style="yellow")

    for user in users:
        table.add_row(
            user.id,
            user.name,
            mask_email(user.email) or "",
            "✅" if user.is_admin else "",
            "✅" if user.is_active else "❌",
            "✅" if user.email_verified else "❌",
        )

    console.print(table)
    console.print(f"\n[green]Found {len(users)} users[/green]")
