"""Customer facing shipment status derived from the order status."""

from datetime import datetime

from pydantic import BaseModel

from src.storefront.entities.service.order import Order, OrderItem, OrderStatus

UNKNOWN_STATUS = "Status não disponível"

# status -> (location, description)
_STATUS_TEXT: dict[OrderStatus, tuple[str, str]] = {
    OrderStatus.PENDING: ("Aguardando processamento", "Pedido recebido e aguardando processamento"),
    OrderStatus.PAID: ("Aguardando processamento", "Pagamento aprovado, pedido aguardando separação"),
    OrderStatus.PROCESSING: ("Em processamento", "Pedido sendo preparado para envio"),
    OrderStatus.SHIPPED: ("Centro de Distribuição - São Paulo/SP", "Pedido enviado e em trânsito"),
    OrderStatus.IN_TRANSIT: ("Em trânsito para entrega", "Pedido em trânsito para entrega"),
    OrderStatus.OUT_FOR_DELIVERY: ("Saiu para entrega", "Pedido saiu para entrega"),
    OrderStatus.DELIVERED: ("Entregue", "Pedido entregue com sucesso"),
    OrderStatus.CANCELLED: ("Pedido cancelado", "Pedido foi cancelado"),
    OrderStatus.REFUNDED: ("Pedido reembolsado", "Pagamento do pedido foi reembolsado"),
}


class TrackedProduct(BaseModel):
    name: str
    quantity: int


class TrackingInfo(BaseModel):
    order_number: str
    status: OrderStatus
    tracking_code: str | None
    last_update: datetime
    location: str
    description: str
    customer_name: str | None
    order_date: datetime
    products: list[TrackedProduct]


def describe_status(status: str) -> tuple[str, str]:
    """``(location, description)`` for an order status."""
    try:
        return _STATUS_TEXT[OrderStatus(status)]
    except (KeyError, ValueError):
        return UNKNOWN_STATUS, UNKNOWN_STATUS


def build_tracking_info(order: Order, items: list[OrderItem]) -> TrackingInfo:
    location, description = describe_status(order.status)
    return TrackingInfo(
        order_number=order.order_number,
        status=order.status,
        tracking_code=order.tracking_code,
        last_update=order.updated_at,
        location=location,
        description=description,
        customer_name=order.customer_name,
        order_date=order.created_at,
        products=[TrackedProduct(name=item.product_name, quantity=item.quantity) for item in items],
    )
