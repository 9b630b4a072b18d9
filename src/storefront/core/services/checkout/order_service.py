"""Order placement.

The cart is priced from the catalog, never from client supplied prices. The
order header and its items are written in the caller's session; payment is
requested afterwards so a provider outage leaves a cancelled order behind
rather than no trace at all.
"""

import secrets
import time
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.core.errors import CheckoutError, PaymentProviderError
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient
from src.storefront.core.validation.schemas import CheckoutSchema
from src.storefront.entities.service.order import (
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
    PaymentStatus,
)
from src.storefront.entities.service.product import ProductRepository
from src.storefront.runtime.config.config_data import ShopConfig

CENTS = Decimal("0.01")


class OrderTotals(BaseModel):
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal


class CheckoutResult(BaseModel):
    order_id: str
    order_number: str
    preference_id: str
    init_point: str | None = None
    sandbox_init_point: str | None = None
    total: Decimal


def to_money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_totals(lines: list[tuple[Decimal, int]], shop: ShopConfig | None = None) -> OrderTotals:
    """Subtotal, shipping and total for ``(unit_price, quantity)`` lines.

    Shipping is free when the subtotal is strictly above the threshold and
    the flat rate otherwise.
    """
    shop = shop or ShopConfig()
    subtotal = to_money(sum((to_money(price) * quantity for price, quantity in lines), Decimal("0")))
    shipping = Decimal("0.00") if subtotal > shop.free_shipping_threshold else to_money(shop.shipping_cost)
    return OrderTotals(subtotal=subtotal, shipping_cost=shipping, total=subtotal + shipping)


def generate_order_number(prefix: str = "VPF") -> str:
    """``<prefix><epoch milliseconds><three random digits>``"""
    return f"{prefix}{int(time.time() * 1000)}{secrets.randbelow(1000):03d}"


class CheckoutService:
    def __init__(
        self,
        session: Session,
        payment_client: MercadoPagoClient,
        encryption: FieldEncryptionService | None = None,
        shop: ShopConfig | None = None,
    ) -> None:
        self._session = session
        self._payment_client = payment_client
        self._orders = OrderRepository(session, encryption)
        self._products = ProductRepository(session)
        self._shop = shop or ShopConfig()

    def place_order(self, checkout: CheckoutSchema, user_id: str | None = None) -> tuple[Order, list[OrderItem]]:
        """Price the cart and insert the order header and its items.

        Raises:
            CheckoutError: for an empty cart, too many items or an unknown product
        """
        if not checkout.items:
            raise CheckoutError("Order must contain at least one item")
        if len(checkout.items) > self._shop.max_items_per_order:
            raise CheckoutError("Order has too many items")

        products = self._products.get_many([item.product_id for item in checkout.items])

        lines: list[tuple[Decimal, int]] = []
        for item in checkout.items:
            product = products.get(item.product_id)
            if product is None:
                raise CheckoutError(f"Product {item.product_id} not found")
            lines.append((product.price, item.quantity))

        totals = calculate_totals(lines, self._shop)
        customer = checkout.customer
        order = Order(
            user_id=user_id,
            order_number=generate_order_number(self._shop.order_prefix),
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=checkout.payment_method,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            total_amount=totals.total,
            currency=self._shop.currency,
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone,
            customer_cpf=customer.cpf,
            shipping_address=checkout.shipping_address.model_dump(),
        )

        items = []
        for item in checkout.items:
            product = products[item.product_id]
            unit_price = to_money(product.price)
            items.append(
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    product_name=product.name,
                    product_sku=product.sku,
                    size=item.size,
                    color=item.color or product.color,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    total_price=to_money(unit_price * item.quantity),
                )
            )

        order, items = self._orders.create(order, items)
        logger.bind(order_number=order.order_number, user_id=user_id).info(
            "Order placed with {} items, total {}", len(items), order.total_amount
        )
        return order, items

    async def request_payment(self, order: Order, items: list[OrderItem]) -> CheckoutResult:
        """Create the hosted checkout preference for a placed order.

        On provider failure the order is marked cancelled with a failed
        payment before the error propagates.

        Raises:
            PaymentProviderError: if the provider call fails
        """
        payer = {
            "name": order.customer_name,
            "email": order.customer_email,
            "phone": order.customer_phone,
        }
        try:
            preference = await self._payment_client.create_preference(order, items, payer)
        except PaymentProviderError:
            self._orders.set_status(order.id, OrderStatus.CANCELLED, PaymentStatus.FAILED)
            logger.bind(order_number=order.order_number).warning(
                "Order cancelled because the payment preference could not be created"
            )
            raise

        self._orders.set_external_reference(order.id, preference.id)
        return CheckoutResult(
            order_id=order.id,
            order_number=order.order_number,
            preference_id=preference.id,
            init_point=preference.init_point,
            sandbox_init_point=preference.sandbox_init_point,
            total=order.total_amount,
        )
