"""Checkout: cart pricing, order placement and payment hand-off."""

from .order_service import (
    CheckoutResult,
    CheckoutService,
    OrderTotals,
    calculate_totals,
    generate_order_number,
    to_money,
)

__all__ = [
    "CheckoutResult",
    "CheckoutService",
    "OrderTotals",
    "calculate_totals",
    "generate_order_number",
    "to_money",
]
