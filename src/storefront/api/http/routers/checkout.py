"""Checkout: turns a cart into an order and a hosted payment session."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import (
    enforce_origin,
    get_db_session,
    get_encryption,
    get_optional_user,
    get_payment_client,
    get_security_logger,
)
from src.storefront.api.http.middleware.limiter import rate_limit
from src.storefront.api.http.payloads import reject_suspicious, screen
from src.storefront.core.errors import PaymentProviderError
from src.storefront.core.services.checkout import CheckoutResult, CheckoutService
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.validation import CepSchema, CheckoutSchema
from src.storefront.entities.core.user import User
from src.storefront.runtime.context import get_config

main_config = get_config()

router = APIRouter(prefix="/checkout", tags=["checkout"])

_checkout_limit = rate_limit(
    requests=main_config.rate_limiter.checkout_requests,
    window_ms=main_config.rate_limiter.window_ms,
)


class CepResponse(BaseModel):
    cep: str
    formatted: str


@router.post(
    "",
    status_code=201,
    response_model=CheckoutResult,
    dependencies=[Depends(_checkout_limit), Depends(enforce_origin)],
)
async def checkout(
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
    payment_client: MercadoPagoClient = Depends(get_payment_client),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> CheckoutResult:
    """Place the order, then open the provider checkout for it.

    The order is committed before the provider is called. When the provider
    fails the order is kept as cancelled and the caller gets a 502.
    """
    reject_suspicious(request, payload, security_logger, check_sql=True)
    data = screen(CheckoutSchema, request, payload, security_logger)

    service = CheckoutService(db, payment_client, encryption, get_config().shop)
    order, items = service.place_order(data, user.id if user else None)
    db.commit()

    security_logger.log(
        SecurityEventType.ORDER_CREATED,
        SecurityLevel.INFO,
        request,
        {"order_number": order.order_number, "total": str(order.total_amount)},
        user_id=user.id if user else None,
    )

    try:
        result = await service.request_payment(order, items)
    except PaymentProviderError:
        db.commit()
        security_logger.log(
            SecurityEventType.PAYMENT_FAILED,
            SecurityLevel.ERROR,
            request,
            {"order_number": order.order_number, "stage": "preference"},
            user_id=user.id if user else None,
        )
        raise

    db.commit()
    logger.bind(order_number=order.order_number).info(
        "Checkout preference {} ready", result.preference_id
    )
    return result


@router.post("/cep", response_model=CepResponse)
async def validate_cep(
    request: Request,
    payload: dict[str, Any] = Body(...),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> CepResponse:
    """Normalize a postal code to eight digits."""
    data = screen(CepSchema, request, payload, security_logger)
    return CepResponse(cep=data.cep, formatted=f"{data.cep[:5]}-{data.cep[5:]}")
