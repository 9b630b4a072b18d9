from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest
from sqlalchemy import StaticPool
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine
from starlette.requests import Request


@pytest.fixture
def request_factory() -> Callable[..., Request]:
    def _make_request(
        headers: dict[str, str] | None = None,
        method: str = "POST",
        path: str = "/",
        client: tuple[str, int] = ("203.0.113.7", 50000),
        app: Any = None,
    ) -> Request:
        scope: dict[str, Any] = {
            "type": "http",
            "headers": [
                (name.lower().encode("ascii"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "method": method,
            "path": path,
            "query_string": b"",
            "client": client,
        }
        if app is not None:
            scope["app"] = app
        return Request(scope)

    return _make_request


@pytest.fixture
def engine() -> Generator[Engine]:
    """Fresh in-memory database per test, shared by every session."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Importing the entities registers every table with the metadata
    import src.storefront.entities  # noqa: F401

    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session]:
    """Create a fresh database session for testing."""
    with Session(engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            session.rollback()
