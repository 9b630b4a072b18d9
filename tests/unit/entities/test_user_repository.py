"""Unit tests for the user repository and its encryption at rest."""

from uuid import UUID

import pytest
from sqlmodel import Session

from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.entities.core.user import User, UserRepository, UserTable


@pytest.fixture
def users(session: Session, encryption: FieldEncryptionService) -> UserRepository:
    return UserRepository(session, encryption)


def _user(**overrides) -> User:
    data = {
        "name": "Maria Souza",
        "email": "Maria@Cliente.com.br ",
        "password_hash": "$2b$04$" + "a" * 53,
        "cpf": "52998224725",
        "birth_date": "1990-05-17",
        "gender": "F",
    }
    return User(**(data | overrides))


class TestUser:
    def test_defaults(self):
        user = _user()

        UUID(user.id)
        assert not user.is_admin
        assert user.is_active
        assert not user.email_verified

    def test_password_hash_not_in_repr(self):
        assert "$2b$" not in repr(_user())


class TestUserRepository:
    def test_create_normalizes_email(self, users: UserRepository):
        created = users.create(_user())

        assert created.email == "maria@cliente.com.br"
        assert users.get_by_email("MARIA@cliente.com.br").id == created.id
        assert users.email_exists(" maria@cliente.com.br")
        assert not users.email_exists("outra@cliente.com.br")

    def test_personal_fields_encrypted_at_rest(self, users: UserRepository, session: Session):
        created = users.create(_user())

        row = session.get(UserTable, created.id)
        for field in ("cpf", "birth_date", "gender"):
            assert FieldEncryptionService.is_encrypted(getattr(row, field))
        assert row.email == "maria@cliente.com.br"

        loaded = users.get(created.id)
        assert loaded.cpf == "52998224725"
        assert loaded.birth_date == "1990-05-17"
        assert loaded.gender == "F"

    def test_plaintext_without_key(self, session: Session, plaintext_encryption: FieldEncryptionService):
        created = UserRepository(session, plaintext_encryption).create(_user())

        assert session.get(UserTable, created.id).cpf == "52998224725"

    def test_update(self, users: UserRepository, session: Session):
        created = users.create(_user())

        updated = users.update(created.model_copy(update={"name": "Maria S.", "cpf": "11144477735"}))

        assert updated.name == "Maria S."
        assert updated.cpf == "11144477735"
        assert FieldEncryptionService.is_encrypted(session.get(UserTable, created.id).cpf)

    def test_update_unknown_user(self, users: UserRepository):
        with pytest.raises(ValueError):
            users.update(_user())

    def test_verification_and_login_stamps(self, users: UserRepository):
        created = users.create(_user())

        users.mark_email_verified(created.id)
        users.touch_last_login(created.id)
        users.set_password_hash(created.id, "$2b$04$" + "b" * 53)

        loaded = users.get(created.id)
        assert loaded.email_verified
        assert loaded.last_login_at is not None
        assert loaded.password_hash.endswith("b" * 53)

    def test_list_and_count(self, users: UserRepository):
        users.create(_user())
        users.create(_user(email="joao@cliente.com.br", cpf=None))

        assert users.count() == 2
        assert len(users.list_all(limit=1)) == 1
        assert {user.email for user in users.list_all()} == {"maria@cliente.com.br", "joao@cliente.com.br"}

    def test_get_missing(self, users: UserRepository):
        assert users.get("missing") is None
        assert users.get_by_email("missing@loja.com.br") is None
