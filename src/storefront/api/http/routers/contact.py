"""Contact form, forwarded to the store mailbox."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from src.storefront.api.http.deps import enforce_origin, get_email_service, get_security_logger
from src.storefront.api.http.middleware.limiter import rate_limit
from src.storefront.api.http.payloads import screen
from src.storefront.core.services.email import EmailService
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.core.validation import ContactSchema
from src.storefront.runtime.context import get_config

main_config = get_config()

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post(
    "",
    dependencies=[
        Depends(rate_limit(requests=main_config.rate_limiter.auth_requests)),
        Depends(enforce_origin),
    ],
)
async def send_contact(
    request: Request,
    payload: dict[str, Any] = Body(...),
    email_service: EmailService = Depends(get_email_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> dict[str, str]:
    """Nothing is stored, so a delivery failure surfaces as a 502."""
    data = screen(ContactSchema, request, payload, security_logger)
    await email_service.send_contact_message(
        name=data.name,
        email=data.email,
        subject=data.subject,
        message=data.message,
        phone=data.phone,
    )
    return {"message": "Message sent"}
