"""Domain errors raised by services and mapped to HTTP statuses by the routers."""


class StorefrontError(Exception):
    """Base exception for storefront operations"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StorefrontError):
    status_code = 404


class ConflictError(StorefrontError):
    status_code = 409


class CheckoutError(StorefrontError):
    """Checkout rejected because of the cart contents (unknown product, empty cart)"""

    status_code = 400


class PaymentProviderError(StorefrontError):
    """Payment provider unreachable or returned an error"""

    status_code = 502


class EmailDeliveryError(StorefrontError):
    """SMTP delivery failed"""

    status_code = 502
