from __future__ import annotations

import json
from typing import Any

import httpx

from src.storefront.core.errors import EmailDeliveryError
from src.storefront.core.services.email import EmailService


class RecordingEmailService(EmailService):
    """Renders messages like the real service but keeps them in memory."""

    def __init__(self, *args: Any, fail: bool = False, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fail = fail
        self.sent: list[dict[str, Any]] = []

    async def send(self, to: str, subject: str, html: str, reply_to: str | None = None) -> None:
        if self.fail:
            raise EmailDeliveryError("SMTP server unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "reply_to": reply_to})

    def subjects(self) -> list[str]:
        return [message["subject"] for message in self.sent]


class FakePaymentProvider:
    """``httpx.MockTransport`` handler standing in for the Mercado Pago API."""

    def __init__(self) -> None:
        self.preferences: list[dict[str, Any]] = []
        self.payments: dict[str, dict[str, Any]] = {}
        self.fail_preferences = False

    def add_payment(self, payment_id: str, status: str, external_reference: str | None) -> None:
        self.payments[payment_id] = {
            "id": int(payment_id),
            "status": status,
            "status_detail": "accredited" if status == "approved" else status,
            "external_reference": external_reference,
            "payment_type_id": "credit_card",
            "transaction_amount": 100.0,
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/checkout/preferences" and request.method == "POST":
            if self.fail_preferences:
                return httpx.Response(500, json={"message": "internal error"})
            body = json.loads(request.content)
            self.preferences.append(body)
            preference_id = f"pref-{len(self.preferences)}"
            return httpx.Response(
                201,
                json={
                    "id": preference_id,
                    "init_point": f"https://mp.test/checkout?pref_id={preference_id}",
                    "sandbox_init_point": f"https://sandbox.mp.test/checkout?pref_id={preference_id}",
                },
            )

        if request.url.path.startswith("/v1/payments/"):
            payment_id = request.url.path.rsplit("/", 1)[-1]
            payment = self.payments.get(payment_id)
            if payment is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json=payment)

        return httpx.Response(404, json={"message": "unknown endpoint"})
