"""A signed-in customer's own orders."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import get_current_user, get_db_session, get_encryption
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.entities.core.user import User
from src.storefront.entities.service.order import (
    Order,
    OrderItem,
    OrderItemRepository,
    OrderRepository,
)

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderWithItems(BaseModel):
    order: Order
    items: list[OrderItem]


@router.get("", response_model=list[OrderWithItems])
def my_orders(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> list[OrderWithItems]:
    """Newest first, each with its line items."""
    orders = OrderRepository(db, encryption).list_for_user(user.id)
    items = OrderItemRepository(db).list_for_orders([order.id for order in orders])
    return [OrderWithItems(order=order, items=items.get(order.id, [])) for order in orders]


@router.get("/{order_id}", response_model=OrderWithItems)
def order_detail(
    order_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> OrderWithItems:
    order = OrderRepository(db, encryption).get(order_id)
    # someone else's order looks exactly like a missing one
    if order is None or order.user_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found")
    return OrderWithItems(order=order, items=OrderItemRepository(db).list_for_order(order.id))
