"""User repository."""

from sqlmodel import Session, func, select

from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.entities.core._base import utcnow
from src.storefront.entities.core.user.entity import User
from src.storefront.entities.core.user.table import UserTable


class UserRepository:
    """Data-access layer for users.

    Personal fields are encrypted before they reach the table and decrypted
    when rows are turned back into entities.
    """

    def __init__(
        self, session: Session, encryption: FieldEncryptionService | None = None
    ) -> None:
        self._session = session
        self._encryption = encryption or FieldEncryptionService()

    def _to_entity(self, row: UserTable) -> User:
        data = self._encryption.decrypt_personal_data(row.model_dump())
        return User.model_validate(data)

    def get(self, user_id: str) -> User | None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return None
        return self._to_entity(row)

    def get_by_email(self, email: str) -> User | None:
        statement = select(UserTable).where(UserTable.email == email.strip().lower())
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return self._to_entity(row)

    def email_exists(self, email: str) -> bool:
        statement = select(UserTable.id).where(UserTable.email == email.strip().lower())
        return self._session.exec(statement).first() is not None

    def create(self, user: User) -> User:
        data = self._encryption.encrypt_personal_data(user.model_dump())
        data["email"] = data["email"].strip().lower()
        row = UserTable.model_validate(data)
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def update(self, user: User) -> User:
        row = self._session.get(UserTable, user.id)
        if row is None:
            raise ValueError(f"User {user.id} not found")

        data = self._encryption.encrypt_personal_data(
            user.model_dump(exclude={"id", "created_at", "updated_at"})
        )
        for key, value in data.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def mark_email_verified(self, user_id: str) -> None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            raise ValueError(f"User {user_id} not found")
        row.email_verified_at = utcnow()
        self._session.add(row)
        self._session.flush()

    def touch_last_login(self, user_id: str) -> None:
        row = self._session.get(UserTable, user_id)
        if row is not None:
            row.last_login_at = utcnow()
            self._session.add(row)
            self._session.flush()

    def set_password_hash(self, user_id: str, password_hash: str) -> None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            raise ValueError(f"User {user_id} not found")
        row.password_hash = password_hash
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()

    def list_all(self, limit: int = 100, offset: int = 0) -> list[User]:
        statement = (
            select(UserTable)
            .order_by(UserTable.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(UserTable)).one()
