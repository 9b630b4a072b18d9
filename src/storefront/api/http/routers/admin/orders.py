"""Back-office order management."""

from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlmodel import Session

from src.storefront.api.http.deps import (
    enforce_origin,
    get_db_session,
    get_email_service,
    get_encryption,
    get_security_logger,
    require_admin,
    require_csrf,
)
from src.storefront.core.errors import NotFoundError
from src.storefront.core.security import mask_cpf, mask_email, mask_phone
from src.storefront.core.services.auth import verify_password
from src.storefront.core.services.email import EmailService, send_safely
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.validation import sanitize_string
from src.storefront.entities.core.user import User
from src.storefront.entities.service.order import (
    Order,
    OrderItem,
    OrderItemRepository,
    OrderRepository,
    OrderStatus,
    PaymentStatus,
)

router = APIRouter(prefix="/orders", tags=["admin"], dependencies=[Depends(require_admin)])

_state_changing = [Depends(enforce_origin), Depends(require_csrf)]

ESTIMATED_DELIVERY_DAYS = 7
_FREE_TEXT_FIELDS = {"tracking_code", "shipping_company", "shipping_notes"}


class MaskedOrder(BaseModel):
    """Order as shown in the back-office, with customer data masked."""

    order: Order
    items: list[OrderItem]

    @classmethod
    def build(cls, order: Order, items: list[OrderItem]) -> "MaskedOrder":
        address = order.shipping_address or {}
        masked_address = (
            {"city": address.get("city"), "state": address.get("state")} if address else None
        )
        masked = order.model_copy(
            update={
                "customer_email": mask_email(order.customer_email),
                "customer_phone": mask_phone(order.customer_phone),
                "customer_cpf": mask_cpf(order.customer_cpf),
                "shipping_address": masked_address,
            }
        )
        return cls(order=masked, items=items)


class OrderPage(BaseModel):
    orders: list[MaskedOrder]
    total: int
    limit: int
    offset: int


class OrderUpdateSchema(BaseModel):
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    tracking_code: str | None = Field(default=None, max_length=100)
    tracking_url: str | None = Field(default=None, max_length=500)
    shipping_company: str | None = Field(default=None, max_length=100)
    shipping_notes: str | None = Field(default=None, max_length=1000)


class RevealRequest(BaseModel):
    field: Literal["email", "phone", "cpf", "address"]
    password: str = Field(min_length=1, max_length=128)


class RevealResponse(BaseModel):
    field: str
    value: Any
    audit_id: str | None


def _get_order(db: Session, encryption: FieldEncryptionService, order_id: str) -> Order:
    order = OrderRepository(db, encryption).get(order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


@router.get("", response_model=OrderPage)
def list_orders(
    status: OrderStatus | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> OrderPage:
    orders_repo = OrderRepository(db, encryption)
    orders = orders_repo.list_orders(status=status, limit=limit, offset=offset)
    items = OrderItemRepository(db).list_for_orders([order.id for order in orders])
    return OrderPage(
        orders=[MaskedOrder.build(order, items.get(order.id, [])) for order in orders],
        total=orders_repo.count(status),
        limit=limit,
        offset=offset,
    )


@router.get("/{order_id}", response_model=MaskedOrder)
def order_detail(
    order_id: str,
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> MaskedOrder:
    order = _get_order(db, encryption, order_id)
    return MaskedOrder.build(order, OrderItemRepository(db).list_for_order(order.id))


@router.put("/{order_id}", response_model=MaskedOrder, dependencies=_state_changing)
async def update_order(
    order_id: str,
    body: OrderUpdateSchema,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
    email_service: EmailService = Depends(get_email_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> MaskedOrder:
    """Update status, payment and shipping fields.

    Moving to ``shipped`` stamps ``shipped_at``, moving to ``delivered``
    stamps ``delivered_at``. A transition to ``shipped`` with a tracking code
    emails the customer.
    """
    current = _get_order(db, encryption, order_id)
    changes = body.model_dump(exclude_none=True)
    for key in _FREE_TEXT_FIELDS & changes.keys():
        changes[key] = sanitize_string(changes[key])
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    now = datetime.now(UTC)
    new_status = changes.get("status", current.status)
    if new_status == OrderStatus.SHIPPED and current.shipped_at is None:
        changes["shipped_at"] = now
    if new_status == OrderStatus.DELIVERED and current.delivered_at is None:
        changes["delivered_at"] = now

    updated = OrderRepository(db, encryption).update(current.model_copy(update=changes))
    db.commit()

    security_logger.log(
        SecurityEventType.ORDER_STATUS_CHANGED
        if new_status != current.status
        else SecurityEventType.ORDER_UPDATED,
        SecurityLevel.INFO,
        request,
        {
            "order_number": updated.order_number,
            "from": current.status,
            "to": updated.status,
            "fields": sorted(changes),
        },
        user_id=admin.id,
    )

    if (
        updated.status == OrderStatus.SHIPPED
        and current.status != OrderStatus.SHIPPED
        and updated.tracking_code
        and updated.customer_email
    ):
        estimated = (now + timedelta(days=ESTIMATED_DELIVERY_DAYS)).strftime("%d/%m/%Y")
        await send_safely(
            email_service.send_order_shipped_email(
                updated.customer_email,
                updated.customer_name or "",
                updated.order_number,
                updated.tracking_code,
                updated.tracking_url,
                updated.shipping_company,
                estimated_delivery=estimated,
            ),
            f"order-shipped:{updated.order_number}",
        )

    return MaskedOrder.build(updated, OrderItemRepository(db).list_for_order(updated.id))


@router.post("/{order_id}/tracking-email", dependencies=_state_changing)
async def send_tracking_email(
    order_id: str,
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
    email_service: EmailService = Depends(get_email_service),
) -> dict[str, str]:
    """Send the tracking code to the customer; SMTP failures answer 502."""
    order = _get_order(db, encryption, order_id)
    if not order.tracking_code:
        raise HTTPException(status_code=400, detail="Order has no tracking code")
    if not order.customer_email:
        raise HTTPException(status_code=400, detail="Order has no customer email")

    await email_service.send_tracking_email(
        order.customer_email,
        order.customer_name or "",
        order.order_number,
        order.tracking_code,
        order.tracking_url,
        order.shipping_company,
    )
    return {"message": "Tracking email sent"}


@router.post("/{order_id}/reveal", response_model=RevealResponse, dependencies=_state_changing)
def reveal_sensitive_data(
    order_id: str,
    body: RevealRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> RevealResponse:
    """Return one decrypted customer field after the admin re-enters their password."""
    if not verify_password(body.password, admin.password_hash):
        security_logger.log(
            SecurityEventType.UNAUTHORIZED_ACCESS,
            SecurityLevel.WARNING,
            request,
            {"order_id": order_id, "field": body.field, "reason": "password re-check failed"},
            user_id=admin.id,
            user_email=admin.email,
        )
        raise HTTPException(status_code=403, detail="Password confirmation failed")

    order = _get_order(db, encryption, order_id)
    values = {
        "email": order.customer_email,
        "phone": order.customer_phone,
        "cpf": order.customer_cpf,
        "address": order.shipping_address,
    }
    event = security_logger.log(
        SecurityEventType.SENSITIVE_DATA_ACCESS,
        SecurityLevel.WARNING,
        request,
        {"order_number": order.order_number, "field": body.field},
        user_id=admin.id,
        user_email=admin.email,
    )
    return RevealResponse(
        field=body.field, value=values[body.field], audit_id=event.id if event else None
    )
