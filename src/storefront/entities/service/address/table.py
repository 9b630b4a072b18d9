"""Address database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class AddressTable(EntityTable, table=True):
    user_id: str = Field(foreign_key="usertable.id", index=True)
    name: str | None = None
    street: str
    number: str
    complement: str | None = None
    neighborhood: str
    city: str
    state: str = Field(max_length=2)
    zip_code: str
    is_default: bool = False
