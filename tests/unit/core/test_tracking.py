"""Unit tests for customer facing shipment status."""

from decimal import Decimal

from src.storefront.core.services.tracking import UNKNOWN_STATUS, build_tracking_info, describe_status
from src.storefront.entities.service.order import Order, OrderItem, OrderStatus


class TestDescribeStatus:
    def test_known_statuses(self):
        assert describe_status("shipped") == (
            "Centro de Distribuição - São Paulo/SP",
            "Pedido enviado e em trânsito",
        )
        assert describe_status(OrderStatus.DELIVERED)[0] == "Entregue"

    def test_every_status_described(self):
        for status in OrderStatus:
            assert describe_status(status) != (UNKNOWN_STATUS, UNKNOWN_STATUS)

    def test_unknown_status(self):
        assert describe_status("lost") == (UNKNOWN_STATUS, UNKNOWN_STATUS)


class TestBuildTrackingInfo:
    def test_build(self):
        order = Order(
            order_number="VPF1",
            status=OrderStatus.IN_TRANSIT,
            tracking_code="BR123456789BR",
            subtotal=Decimal("10.00"),
            shipping_cost=Decimal("15.90"),
            total_amount=Decimal("25.90"),
            customer_name="Maria Souza",
            customer_email="maria@cliente.com.br",
        )
        items = [
            OrderItem(
                order_id=order.id,
                product_id="p1",
                product_name="Meia",
                quantity=2,
                unit_price=Decimal("5.00"),
                total_price=Decimal("10.00"),
            )
        ]

        info = build_tracking_info(order, items)

        assert info.order_number == "VPF1"
        assert info.tracking_code == "BR123456789BR"
        assert info.location == "Em trânsito para entrega"
        assert info.customer_name == "Maria Souza"
        assert info.order_date == order.created_at
        assert [product.model_dump() for product in info.products] == [{"name": "Meia", "quantity": 2}]
        assert "customer_email" not in info.model_dump()
