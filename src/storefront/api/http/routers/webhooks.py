"""Payment provider notifications."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from loguru import logger
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_db_session,
    get_email_service,
    get_encryption,
    get_payment_client,
    get_security_logger,
)
from src.storefront.core.services.email import EmailService, send_safely
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient, map_payment_status
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.entities.service.order import (
    OrderItemRepository,
    OrderRepository,
    PaymentStatus,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/mercadopago")
async def mercadopago_notification(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
    payment_client: MercadoPagoClient = Depends(get_payment_client),
    email_service: EmailService = Depends(get_email_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> dict[str, Any]:
    """Apply a payment notification to the order it references.

    Only ``payment`` notifications are processed; everything else is
    acknowledged so the provider stops retrying.
    """
    if payload.get("type") != "payment":
        logger.bind(notification_type=payload.get("type")).info("Ignoring provider notification")
        return {"success": True, "processed": False}

    payment_id = str((payload.get("data") or {}).get("id") or "")
    if not payment_id:
        logger.warning("Payment notification without a payment id")
        return {"success": True, "processed": False}

    payment = await payment_client.get_payment(payment_id)
    if not payment.external_reference:
        logger.bind(payment_id=payment_id).warning("Payment has no external reference")
        return {"success": True, "processed": False}

    orders = OrderRepository(db, encryption)
    order = orders.get_by_number(payment.external_reference)
    if order is None:
        logger.bind(payment_id=payment_id, order_number=payment.external_reference).warning(
            "Payment references an unknown order"
        )
        return {"success": True, "processed": False}

    order_status, payment_status = map_payment_status(payment.status)
    became_paid = (
        payment_status == PaymentStatus.PAID and order.payment_status != PaymentStatus.PAID
    )
    updated = orders.set_status(order.id, order_status, payment_status, payment_id=payment.id)
    db.commit()

    failed = payment_status == PaymentStatus.FAILED
    security_logger.log(
        SecurityEventType.PAYMENT_FAILED if failed else SecurityEventType.PAYMENT_PROCESSED,
        SecurityLevel.WARNING if failed else SecurityLevel.INFO,
        request,
        {
            "order_number": updated.order_number,
            "payment_id": payment.id,
            "provider_status": payment.status,
            "status_detail": payment.status_detail,
        },
        user_id=updated.user_id,
    )

    if became_paid and updated.customer_email:
        items = OrderItemRepository(db).list_for_order(updated.id)
        await send_safely(
            email_service.send_payment_confirmation_email(
                updated.customer_email,
                updated.customer_name or "",
                updated.order_number,
                updated.total_amount,
                [
                    {"name": item.product_name, "quantity": item.quantity, "price": item.total_price}
                    for item in items
                ],
            ),
            f"payment-confirmation:{updated.order_number}",
        )

    return {
        "success": True,
        "processed": True,
        "order_number": updated.order_number,
        "status": updated.status,
        "payment_status": updated.payment_status,
    }


@router.get("/mercadopago")
async def mercadopago_check() -> dict[str, str]:
    """Lets the provider dashboard verify the endpoint."""
    return {"status": "ok"}
