"""Payment provider integration."""

from .mercadopago import (
    CheckoutPreference,
    MercadoPagoClient,
    ProviderPayment,
    map_payment_status,
)

__all__ = ["CheckoutPreference", "MercadoPagoClient", "ProviderPayment", "map_payment_status"]
