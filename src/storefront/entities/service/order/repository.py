"""Order repositories."""

import json
from collections import defaultdict
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlmodel import Session, col, func, select

from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.entities.core._base import utcnow
from src.storefront.entities.service.order.entity import (
    REVENUE_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from src.storefront.entities.service.order.table import OrderItemTable, OrderTable

_TIMESTAMP_FIELDS = {"id", "created_at", "updated_at"}


class OrderRepository:
    """Data-access layer for order headers.

    Customer fields are encrypted on write and decrypted on read; the
    shipping address is stored as a JSON document.
    """

    def __init__(
        self, session: Session, encryption: FieldEncryptionService | None = None
    ) -> None:
        self._session = session
        self._encryption = encryption or FieldEncryptionService()

    def _to_row_data(self, order: Order, exclude: set[str] | None = None) -> dict[str, Any]:
        return self._encryption.encrypt_order_data(order.model_dump(exclude=exclude))

    def _to_entity(self, row: OrderTable) -> Order:
        data = self._encryption.decrypt_order_data(row.model_dump())
        address = data.get("shipping_address")
        if isinstance(address, str):
            try:
                data["shipping_address"] = json.loads(address)
            except json.JSONDecodeError:
                logger.warning("Order {} has an unreadable shipping address", row.id)
                data["shipping_address"] = None
        return Order.model_validate(data)

    def create(self, order: Order, items: list[OrderItem]) -> tuple[Order, list[OrderItem]]:
        """Insert the order header, then its line items."""
        row = OrderTable.model_validate(self._to_row_data(order))
        self._session.add(row)
        self._session.flush()

        item_rows = []
        for item in items:
            item_row = OrderItemTable.model_validate(item.model_dump() | {"order_id": row.id})
            self._session.add(item_row)
            item_rows.append(item_row)
        self._session.flush()

        return self._to_entity(row), [
            OrderItem.model_validate(item_row, from_attributes=True) for item_row in item_rows
        ]

    def get(self, order_id: str) -> Order | None:
        row = self._session.get(OrderTable, order_id)
        return None if row is None else self._to_entity(row)

    def get_by_number(self, order_number: str) -> Order | None:
        row = self._session.exec(
            select(OrderTable).where(OrderTable.order_number == order_number)
        ).first()
        return None if row is None else self._to_entity(row)

    def get_by_tracking_code(self, tracking_code: str) -> Order | None:
        row = self._session.exec(
            select(OrderTable).where(OrderTable.tracking_code == tracking_code)
        ).first()
        return None if row is None else self._to_entity(row)

    def update(self, order: Order) -> Order:
        row = self._session.get(OrderTable, order.id)
        if row is None:
            raise ValueError(f"Order {order.id} not found")

        for key, value in self._to_row_data(order, exclude=_TIMESTAMP_FIELDS).items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def set_status(
        self,
        order_id: str,
        status: OrderStatus,
        payment_status: PaymentStatus | None = None,
        payment_id: str | None = None,
    ) -> Order:
        row = self._session.get(OrderTable, order_id)
        if row is None:
            raise ValueError(f"Order {order_id} not found")

        row.status = status
        if payment_status is not None:
            row.payment_status = payment_status
        if payment_id is not None:
            row.payment_id = payment_id
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def set_external_reference(self, order_id: str, reference: str) -> None:
        row = self._session.get(OrderTable, order_id)
        if row is None:
            raise ValueError(f"Order {order_id} not found")
        row.external_reference = reference
        self._session.add(row)
        self._session.flush()

    def list_for_user(self, user_id: str) -> list[Order]:
        statement = (
            select(OrderTable)
            .where(OrderTable.user_id == user_id)
            .order_by(col(OrderTable.created_at).desc())
        )
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def list_orders(
        self, status: OrderStatus | None = None, limit: int = 20, offset: int = 0
    ) -> list[Order]:
        statement = select(OrderTable)
        if status is not None:
            statement = statement.where(OrderTable.status == status)
        statement = (
            statement.order_by(col(OrderTable.created_at).desc()).offset(offset).limit(limit)
        )
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def count(self, status: OrderStatus | None = None) -> int:
        statement = select(func.count()).select_from(OrderTable)
        if status is not None:
            statement = statement.where(OrderTable.status == status)
        return self._session.exec(statement).one()

    def count_by_status(self) -> dict[str, int]:
        statement = select(OrderTable.status, func.count()).group_by(OrderTable.status)
        counts = {status.value: 0 for status in OrderStatus}
        for status, total in self._session.exec(statement).all():
            counts[status] = total
        return counts

    def revenue(self) -> Decimal:
        statement = select(func.coalesce(func.sum(OrderTable.total_amount), 0)).where(
            col(OrderTable.status).in_([status.value for status in REVENUE_STATUSES])
        )
        return Decimal(str(self._session.exec(statement).one())).quantize(Decimal("0.01"))


class OrderItemRepository:
    """Data-access layer for order line items."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_order(self, order_id: str) -> list[OrderItem]:
        statement = (
            select(OrderItemTable)
            .where(OrderItemTable.order_id == order_id)
            .order_by(OrderItemTable.created_at)
        )
        return [
            OrderItem.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def list_for_orders(self, order_ids: list[str]) -> dict[str, list[OrderItem]]:
        grouped: dict[str, list[OrderItem]] = defaultdict(list)
        if not order_ids:
            return grouped
        statement = (
            select(OrderItemTable)
            .where(col(OrderItemTable.order_id).in_(order_ids))
            .order_by(OrderItemTable.created_at)
        )
        for row in self._session.exec(statement).all():
            grouped[row.order_id].append(OrderItem.model_validate(row, from_attributes=True))
        return grouped
