"""Database maintenance commands."""

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from src.storefront.core.services.database import DbSessionService
from src.storefront.entities.core.auth_token import AuthTokenRepository
from src.storefront.runtime.init_db import init_db

console = Console()

db_app = typer.Typer(help="Create tables and clean up stored data")


@db_app.command("init")
def init() -> None:
    """Create every table that does not exist yet."""
    try:
        tables = init_db()
    except SQLAlchemyError as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Database ready ({len(tables)} tables)[/green]")
    for name in tables:
        console.print(f"  • {name}")


@db_app.command("purge-tokens")
def purge_tokens() -> None:
    """Delete expired and used verification and password reset tokens."""
    service = DbSessionService()
    try:
        with service.session_scope() as session:
            removed = AuthTokenRepository(session).purge_expired()
    except SQLAlchemyError as e:
        console.print(f"[red]❌ Failed to purge tokens: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        service.dispose()

    console.print(f"[green]Removed {removed} tokens[/green]")
