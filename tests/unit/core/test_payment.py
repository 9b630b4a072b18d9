"""Unit tests for the Mercado Pago client."""

from decimal import Decimal

import httpx
import pytest

from src.storefront.core.errors import PaymentProviderError
from src.storefront.core.services.payment import MercadoPagoClient, map_payment_status
from src.storefront.entities.service.order import Order, OrderItem, OrderStatus, PaymentStatus
from src.storefront.runtime.config.config_data import PaymentConfig
from tests.fixtures.dummies import FakePaymentProvider


@pytest.fixture
def order() -> Order:
    return Order(
        order_number="VPF1700000000000123",
        subtotal=Decimal("100.00"),
        shipping_cost=Decimal("15.90"),
        total_amount=Decimal("115.90"),
        customer_name="Maria Souza",
        customer_email="maria@cliente.com.br",
    )


@pytest.fixture
def items(order: Order) -> list[OrderItem]:
    return [
        OrderItem(
            order_id=order.id,
            product_id="prod-1",
            product_name="Nike Air Max 90",
            quantity=2,
            unit_price=Decimal("50.00"),
            total_price=Decimal("100.00"),
        )
    ]


class TestStatusMapping:
    @pytest.mark.parametrize(
        "provider_status,expected",
        [
            ("approved", (OrderStatus.PAID, PaymentStatus.PAID)),
            ("pending", (OrderStatus.PENDING, PaymentStatus.PENDING)),
            ("in_process", (OrderStatus.PROCESSING, PaymentStatus.PENDING)),
            ("rejected", (OrderStatus.CANCELLED, PaymentStatus.FAILED)),
            ("cancelled", (OrderStatus.CANCELLED, PaymentStatus.FAILED)),
            ("refunded", (OrderStatus.REFUNDED, PaymentStatus.REFUNDED)),
            ("APPROVED", (OrderStatus.PAID, PaymentStatus.PAID)),
            ("charged_back", (OrderStatus.PENDING, PaymentStatus.PENDING)),
            (None, (OrderStatus.PENDING, PaymentStatus.PENDING)),
        ],
    )
    def test_map_payment_status(self, provider_status, expected):
        assert map_payment_status(provider_status) == expected


class TestBuildPreference:
    def test_preference_payload(self, payment_client: MercadoPagoClient, order: Order, items):
        preference = payment_client.build_preference(
            order, items, {"name": "Maria", "email": "maria@cliente.com.br", "phone": "11987654321"}
        )

        assert preference["items"] == [
            {
                "id": "prod-1",
                "title": "Nike Air Max 90",
                "quantity": 2,
                "unit_price": 50.0,
                "currency_id": "BRL",
            }
        ]
        assert preference["external_reference"] == order.order_number
        assert preference["notification_url"] == "http://localhost:3000/api/webhooks/mercadopago"
        assert preference["back_urls"]["success"] == "http://localhost:3000/checkout/success"
        assert preference["auto_return"] == "approved"
        assert preference["payer"]["phone"] == {"number": "11987654321"}
        assert preference["shipments"] == {"cost": 15.9, "mode": "not_specified"}

    def test_no_shipments_without_cost(self, payment_client: MercadoPagoClient, order: Order, items):
        free = order.model_copy(update={"shipping_cost": Decimal("0.00")})

        preference = payment_client.build_preference(free, items, {"name": "Maria", "email": "m@x.com.br"})

        assert "shipments" not in preference
        assert "phone" not in preference["payer"]


class TestProviderCalls:
    @pytest.mark.asyncio
    async def test_create_preference(
        self, payment_client: MercadoPagoClient, payment_provider: FakePaymentProvider, order: Order, items
    ):
        preference = await payment_client.create_preference(order, items, {"name": "Maria"})

        assert preference.id == "pref-1"
        assert preference.sandbox_init_point == "https://sandbox.mp.test/checkout?pref_id=pref-1"
        assert len(payment_provider.preferences) == 1

    @pytest.mark.asyncio
    async def test_create_preference_rejected(
        self, payment_client: MercadoPagoClient, payment_provider: FakePaymentProvider, order: Order, items
    ):
        payment_provider.fail_preferences = True

        with pytest.raises(PaymentProviderError, match="rejected"):
            await payment_client.create_preference(order, items, {})

    @pytest.mark.asyncio
    async def test_provider_unreachable(self, order: Order, items):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = MercadoPagoClient(
            PaymentConfig(access_token="token"), transport=httpx.MockTransport(refuse)
        )

        with pytest.raises(PaymentProviderError, match="unreachable"):
            await client.create_preference(order, items, {})

    @pytest.mark.asyncio
    async def test_missing_access_token(self, order: Order, items):
        client = MercadoPagoClient(PaymentConfig())

        assert not client.configured
        with pytest.raises(PaymentProviderError, match="not configured"):
            await client.create_preference(order, items, {})

    @pytest.mark.asyncio
    async def test_get_payment(self, payment_client: MercadoPagoClient, payment_provider: FakePaymentProvider):
        payment_provider.add_payment("987", "approved", "VPF1")

        payment = await payment_client.get_payment("987")

        assert payment.id == "987"
        assert payment.status == "approved"
        assert payment.external_reference == "VPF1"
        assert payment.payment_type == "credit_card"

    @pytest.mark.asyncio
    async def test_get_unknown_payment(self, payment_client: MercadoPagoClient):
        with pytest.raises(PaymentProviderError, match="Could not fetch payment 404404"):
            await payment_client.get_payment("404404")
