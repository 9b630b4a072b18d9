"""Application fixtures: a TestClient wired to in-memory services."""

from collections.abc import Callable, Generator
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session

from src.storefront.api.http.app import app
from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.services.auth import JwtService, LoginAttemptTracker, hash_password
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.core.services.uploads import SecureUploadService
from src.storefront.entities.core.user import User, UserRepository
from src.storefront.entities.service.brand import Brand, BrandRepository
from src.storefront.entities.service.category import Category, CategoryRepository
from src.storefront.entities.service.product import Product, ProductRepository
from tests.fixtures.dummies import RecordingEmailService

TEST_PASSWORD = "Str0ng!Passw@rd"


@pytest.fixture
def app_dependencies(
    engine: Engine,
    security_logger: SecurityLogger,
    encryption: FieldEncryptionService,
    jwt_service: JwtService,
    login_attempts: LoginAttemptTracker,
    email_service: RecordingEmailService,
    payment_client: MercadoPagoClient,
    upload_service: SecureUploadService,
) -> ApplicationDependencies:
    return ApplicationDependencies(
        database_service=DbSessionService(engine=engine),
        security_logger=security_logger,
        encryption=encryption,
        jwt_service=jwt_service,
        login_attempts=login_attempts,
        email_service=email_service,
        payment_client=payment_client,
        upload_service=upload_service,
    )


@pytest.fixture
def client(app_dependencies: ApplicationDependencies) -> Generator[TestClient]:
    """Test client running the real app against the per-test services."""
    app.state.app_dependencies = app_dependencies
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.state.app_dependencies = None


@pytest.fixture
def make_user(session: Session, encryption: FieldEncryptionService) -> Callable[..., User]:
    def _make_user(
        email: str = "cliente@loja.com.br",
        name: str = "Maria Souza",
        password: str = TEST_PASSWORD,
        is_admin: bool = False,
        verified: bool = True,
        is_active: bool = True,
        cpf: str | None = None,
    ) -> User:
        user = UserRepository(session, encryption).create(
            User(
                name=name,
                email=email,
                password_hash=hash_password(password, rounds=4),
                is_admin=is_admin,
                is_active=is_active,
                cpf=cpf,
                email_verified_at=datetime.now(UTC) if verified else None,
            )
        )
        session.commit()
        return user

    return _make_user


@pytest.fixture
def customer(make_user: Callable[..., User]) -> User:
    return make_user()


@pytest.fixture
def admin(make_user: Callable[..., User]) -> User:
    return make_user(email="admin@loja.com.br", name="Ana Admin", is_admin=True)


@pytest.fixture
def auth_headers(jwt_service: JwtService) -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        token = jwt_service.issue(user.id, email=user.email, is_admin=user.is_admin)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def catalog(session: Session) -> dict[str, Product]:
    """A small catalog: two brands, one category, three products."""
    brands = BrandRepository(session)
    nike = brands.create(Brand(name="Nike", slug="nike"))
    adidas = brands.create(Brand(name="Adidas", slug="adidas"))
    category = CategoryRepository(session).create(Category(name="Tênis", slug="tenis"))

    products = ProductRepository(session)
    created = {
        "air-max": products.create(
            Product(
                name="Nike Air Max 90",
                slug="nike-air-max-90",
                description="Tênis clássico com amortecimento Air",
                price=Decimal("120.00"),
                original_price=Decimal("150.00"),
                sku="NK-AM90",
                stock_quantity=12,
                color="Preto",
                brand_id=nike.id,
                category_id=category.id,
                is_featured=True,
            )
        ),
        "superstar": products.create(
            Product(
                name="Adidas Superstar",
                slug="adidas-superstar",
                price=Decimal("90.50"),
                stock_quantity=3,
                color="Branco",
                brand_id=adidas.id,
                category_id=category.id,
            )
        ),
        "retired": products.create(
            Product(
                name="Nike Cortez",
                slug="nike-cortez",
                price=Decimal("80.00"),
                color="Branco",
                brand_id=nike.id,
                is_active=False,
            )
        ),
    }
    session.commit()
    return created


@pytest.fixture
def checkout_payload(catalog: dict[str, Product]) -> dict:
    return {
        "items": [
            {"product_id": catalog["air-max"].id, "quantity": 1, "price": "1.00", "size": "42"},
            {"product_id": catalog["superstar"].id, "quantity": 2},
        ],
        "customer": {
            "name": "Maria Souza",
            "email": "maria@cliente.com.br",
            "phone": "11987654321",
            "cpf": "529.982.247-25",
        },
        "shipping_address": {
            "zipCode": "01310-100",
            "street": "Avenida Paulista",
            "number": "1000",
            "neighborhood": "Bela Vista",
            "city": "São Paulo",
            "state": "SP",
        },
    }
