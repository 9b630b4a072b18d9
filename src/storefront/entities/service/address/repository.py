"""Address repository."""

from sqlmodel import Session, col, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.service.address.entity import Address
from src.storefront.entities.service.address.table import AddressTable


class AddressRepository:
    """Data-access layer for a user's address book.

    Every query is scoped to the owning user, so a caller can never touch
    another customer's addresses by guessing ids.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _owned_row(self, user_id: str, address_id: str) -> AddressTable | None:
        row = self._session.get(AddressTable, address_id)
        if row is None or row.user_id != user_id:
            return None
        return row

    def list_for_user(self, user_id: str) -> list[Address]:
        """Default address first, then newest."""
        statement = (
            select(AddressTable)
            .where(AddressTable.user_id == user_id)
            .order_by(col(AddressTable.is_default).desc(), col(AddressTable.created_at).desc())
        )
        return [
            Address.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def get_for_user(self, user_id: str, address_id: str) -> Address | None:
        row = self._owned_row(user_id, address_id)
        return None if row is None else Address.model_validate(row, from_attributes=True)

    def create(self, address: Address) -> Address:
        """Insert an address; the first one a user saves becomes the default."""
        has_any = self._session.exec(
            select(AddressTable.id).where(AddressTable.user_id == address.user_id)
        ).first()
        data = address.model_dump()
        data["state"] = data["state"].upper()
        if has_any is None:
            data["is_default"] = True
        elif data["is_default"]:
            self._clear_default(address.user_id)

        row = AddressTable.model_validate(data)
        self._session.add(row)
        self._session.flush()
        return Address.model_validate(row, from_attributes=True)

    def update(self, address: Address) -> Address:
        row = self._owned_row(address.user_id, address.id)
        if row is None:
            raise ValueError(f"Address {address.id} not found")

        data = address.model_dump(exclude={"id", "user_id", "created_at", "updated_at"})
        data["state"] = data["state"].upper()
        if data["is_default"] and not row.is_default:
            self._clear_default(address.user_id)
        elif not data["is_default"] and row.is_default:
            # the default can only move, never disappear
            data["is_default"] = True

        for key, value in data.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return Address.model_validate(row, from_attributes=True)

    def delete(self, user_id: str, address_id: str) -> bool:
        """Delete an address; a deleted default passes to the newest remaining one."""
        row = self._owned_row(user_id, address_id)
        if row is None:
            return False

        was_default = row.is_default
        self._session.delete(row)
        self._session.flush()

        if was_default:
            newest = self._session.exec(
                select(AddressTable)
                .where(AddressTable.user_id == user_id)
                .order_by(col(AddressTable.created_at).desc())
            ).first()
            if newest is not None:
                newest.is_default = True
                self._session.add(newest)
                self._session.flush()
        return True

    def set_default(self, user_id: str, address_id: str) -> Address | None:
        row = self._owned_row(user_id, address_id)
        if row is None:
            return None
        self._clear_default(user_id)
        row.is_default = True
        self._session.add(row)
        self._session.flush()
        return Address.model_validate(row, from_attributes=True)

    def _clear_default(self, user_id: str) -> None:
        statement = select(AddressTable).where(
            (AddressTable.user_id == user_id) & (AddressTable.is_default == True)  # noqa: E712
        )
        for row in self._session.exec(statement).all():
            row.is_default = False
            self._session.add(row)
