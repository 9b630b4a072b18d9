"""Database initialization script."""

from src.storefront.core.services.database import DbManageService
from src.storefront.runtime.context import get_config

main_config = get_config()  # Ensure config is loaded before DB init


def init_db() -> list[str]:
    """Create all database tables and return their names."""
    db_manage_service = DbManageService()
    db_manage_service.create_all()
    return db_manage_service.table_names()


if __name__ == "__main__":
    init_db()
