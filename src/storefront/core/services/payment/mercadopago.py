"""Mercado Pago hosted checkout client."""

from decimal import Decimal
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel

from src.storefront.core.errors import PaymentProviderError
from src.storefront.entities.service.order.entity import Order, OrderItem, OrderStatus, PaymentStatus
from src.storefront.runtime.config.config_data import PaymentConfig

_STATUS_MAP: dict[str, tuple[OrderStatus, PaymentStatus]] = {
    "approved": (OrderStatus.PAID, PaymentStatus.PAID),
    "pending": (OrderStatus.PENDING, PaymentStatus.PENDING),
    "in_process": (OrderStatus.PROCESSING, PaymentStatus.PENDING),
    "rejected": (OrderStatus.CANCELLED, PaymentStatus.FAILED),
    "cancelled": (OrderStatus.CANCELLED, PaymentStatus.FAILED),
    "refunded": (OrderStatus.REFUNDED, PaymentStatus.REFUNDED),
}


def map_payment_status(provider_status: str | None) -> tuple[OrderStatus, PaymentStatus]:
    """Translate a provider payment status into order and payment statuses.

    Unknown statuses leave the order pending.
    """
    return _STATUS_MAP.get((provider_status or "").lower(), (OrderStatus.PENDING, PaymentStatus.PENDING))


class CheckoutPreference(BaseModel):
    id: str
    init_point: str | None = None
    sandbox_init_point: str | None = None


class ProviderPayment(BaseModel):
    id: str
    status: str | None = None
    status_detail: str | None = None
    external_reference: str | None = None
    payment_type: str | None = None
    transaction_amount: Decimal | None = None


class MercadoPagoClient:
    """Thin async client for the two provider calls the store needs."""

    def __init__(
        self,
        config: PaymentConfig | None = None,
        base_url: str = "http://localhost:8000",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or PaymentConfig()
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._config.access_token)

    def _client(self) -> httpx.AsyncClient:
        if not self._config.access_token:
            raise PaymentProviderError("Payment provider access token not configured")
        return httpx.AsyncClient(
            base_url=self._config.api_base,
            timeout=self._config.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._config.access_token}",
                "Content-Type": "application/json",
            },
        )

    def build_preference(
        self, order: Order, items: list[OrderItem], payer: dict[str, Any]
    ) -> dict[str, Any]:
        preference: dict[str, Any] = {
            "items": [
                {
                    "id": item.product_id,
                    "title": item.product_name,
                    "quantity": item.quantity,
                    "unit_price": float(item.unit_price),
                    "currency_id": order.currency,
                }
                for item in items
            ],
            "payer": {"name": payer.get("name"), "email": payer.get("email")},
            "external_reference": order.order_number,
            "notification_url": f"{self._base_url}/api/webhooks/mercadopago",
            "back_urls": {
                "success": f"{self._base_url}/checkout/success",
                "failure": f"{self._base_url}/checkout/failure",
                "pending": f"{self._base_url}/checkout/pending",
            },
            "auto_return": "approved",
            "statement_descriptor": self._config.statement_descriptor,
        }
        if payer.get("phone"):
            preference["payer"]["phone"] = {"number": payer["phone"]}
        if order.shipping_cost > 0:
            preference["shipments"] = {"cost": float(order.shipping_cost), "mode": "not_specified"}
        return preference

    async def create_preference(
        self, order: Order, items: list[OrderItem], payer: dict[str, Any]
    ) -> CheckoutPreference:
        """Open a hosted checkout session for ``order``.

        Raises:
            PaymentProviderError: if the provider is unreachable or rejects the request
        """
        payload = self.build_preference(order, items, payer)
        try:
            async with self._client() as client:
                response = await client.post("/checkout/preferences", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Preference creation for {} failed with {}: {}",
                order.order_number,
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise PaymentProviderError("Payment provider rejected the checkout") from exc
        except httpx.HTTPError as exc:
            logger.error("Payment provider unreachable: {}", exc)
            raise PaymentProviderError("Payment provider unreachable") from exc

        preference = CheckoutPreference.model_validate(
            {**data, "id": str(data.get("id", ""))}
        )
        if not preference.id:
            raise PaymentProviderError("Payment provider returned no preference id")
        logger.info("Created checkout preference {} for {}", preference.id, order.order_number)
        return preference

    async def get_payment(self, payment_id: str) -> ProviderPayment:
        try:
            async with self._client() as client:
                response = await client.get(f"/v1/payments/{payment_id}")
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Fetching payment {} failed with {}", payment_id, exc.response.status_code
            )
            raise PaymentProviderError(f"Could not fetch payment {payment_id}") from exc
        except httpx.HTTPError as exc:
            logger.error("Payment provider unreachable: {}", exc)
            raise PaymentProviderError("Payment provider unreachable") from exc

        return ProviderPayment(
            id=str(data.get("id", payment_id)),
            status=data.get("status"),
            status_detail=data.get("status_detail"),
            external_reference=data.get("external_reference"),
            payment_type=(data.get("payment_method") or {}).get("type") or data.get("payment_type_id"),
            transaction_amount=data.get("transaction_amount"),
        )
