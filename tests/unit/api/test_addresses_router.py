"""Unit tests for the customer address book."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from src.storefront.entities.core.user import User


@pytest.fixture
def headers(customer: User, auth_headers: Callable[[User], dict[str, str]]) -> dict[str, str]:
    return auth_headers(customer)


def address(**overrides) -> dict:
    data = {
        "name": "Casa",
        "street": "Rua Augusta",
        "number": "500",
        "neighborhood": "Consolação",
        "city": "São Paulo",
        "state": "SP",
        "zip_code": "01305-000",
    }
    data.update(overrides)
    return data


class TestAddresses:
    def test_first_address_becomes_default(self, client: TestClient, headers: dict[str, str]):
        response = client.post("/api/addresses", json=address(), headers=headers)

        assert response.status_code == 201
        assert response.json()["is_default"] is True

    def test_new_default_replaces_previous(self, client: TestClient, headers: dict[str, str]):
        first = client.post("/api/addresses", json=address(), headers=headers).json()
        second = client.post(
            "/api/addresses", json=address(name="Trabalho", is_default=True), headers=headers
        ).json()

        listed = client.get("/api/addresses", headers=headers).json()

        defaults = {entry["id"]: entry["is_default"] for entry in listed}
        assert defaults == {first["id"]: False, second["id"]: True}
        assert listed[0]["id"] == second["id"]

    def test_invalid_state(self, client: TestClient, headers: dict[str, str]):
        response = client.post("/api/addresses", json=address(state="sp"), headers=headers)

        assert response.status_code == 400

    def test_update_and_set_default(self, client: TestClient, headers: dict[str, str]):
        first = client.post("/api/addresses", json=address(), headers=headers).json()
        second = client.post("/api/addresses", json=address(name="Trabalho"), headers=headers).json()

        updated = client.put(
            f"/api/addresses/{second['id']}", json={"number": "1200"}, headers=headers
        )
        assert updated.status_code == 200
        assert updated.json()["number"] == "1200"

        promoted = client.post(f"/api/addresses/{second['id']}/default", headers=headers)
        assert promoted.json()["is_default"] is True
        listed = {entry["id"]: entry["is_default"] for entry in client.get("/api/addresses", headers=headers).json()}
        assert listed == {first["id"]: False, second["id"]: True}

    def test_delete(self, client: TestClient, headers: dict[str, str]):
        created = client.post("/api/addresses", json=address(), headers=headers).json()

        assert client.delete(f"/api/addresses/{created['id']}", headers=headers).status_code == 200
        assert client.get("/api/addresses", headers=headers).json() == []
        assert client.delete(f"/api/addresses/{created['id']}", headers=headers).status_code == 404

    def test_other_users_address_is_not_found(
        self,
        client: TestClient,
        headers: dict[str, str],
        make_user: Callable[..., User],
        auth_headers: Callable[[User], dict[str, str]],
    ):
        created = client.post("/api/addresses", json=address(), headers=headers).json()
        other = auth_headers(make_user(email="outra@cliente.com.br"))

        response = client.put(f"/api/addresses/{created['id']}", json={"number": "1"}, headers=other)

        assert response.status_code == 404
        assert client.get("/api/addresses", headers=other).json() == []

    def test_requires_authentication(self, client: TestClient):
        assert client.get("/api/addresses").status_code == 401
