"""Entity: Address."""

from src.storefront.entities.core._base import Entity


class Address(Entity):
    """A saved delivery address in a customer's address book."""

    user_id: str
    name: str | None = None
    street: str
    number: str
    complement: str | None = None
    neighborhood: str
    city: str
    state: str
    zip_code: str
    is_default: bool = False
