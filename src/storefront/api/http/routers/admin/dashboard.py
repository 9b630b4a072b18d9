"""Back-office overview and security reports."""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_db_session,
    get_encryption,
    get_security_logger,
    require_admin,
)
from src.storefront.api.http.routers.admin.orders import MaskedOrder
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.security_audit import SecurityAuditService, SecurityReport
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.entities.core.user import UserRepository
from src.storefront.entities.service.order import OrderItemRepository, OrderRepository
from src.storefront.entities.service.product import ProductRepository
from src.storefront.runtime.context import get_config

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])

RECENT_ORDERS = 5


class DashboardStats(BaseModel):
    products: int
    total_stock: int
    average_price: Decimal
    low_stock: int
    orders_by_status: dict[str, int]
    total_orders: int
    revenue: Decimal
    users: int
    recent_orders: list[MaskedOrder]


@router.get("/dashboard", response_model=DashboardStats)
def dashboard(
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> DashboardStats:
    products = ProductRepository(db)
    stock = products.stock_summary(get_config().shop.low_stock_threshold)
    orders = OrderRepository(db, encryption)
    by_status = orders.count_by_status()
    recent = orders.list_orders(limit=RECENT_ORDERS)
    items = OrderItemRepository(db).list_for_orders([order.id for order in recent])

    return DashboardStats(
        products=products.count(),
        total_stock=stock["total_stock"],
        average_price=stock["average_price"],
        low_stock=stock["low_stock"],
        orders_by_status=by_status,
        total_orders=sum(by_status.values()),
        revenue=orders.revenue(),
        users=UserRepository(db, encryption).count(),
        recent_orders=[MaskedOrder.build(order, items.get(order.id, [])) for order in recent],
    )


@router.get("/security-audit")
def security_audit(
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> dict[str, Any]:
    """Run the audit checks and attach encryption status and event statistics."""
    report: SecurityReport = SecurityAuditService(db, encryption, security_logger).run()
    return {
        "report": report.model_dump(mode="json"),
        "encryption": encryption.status(),
        "security_events": security_logger.stats(),
    }
