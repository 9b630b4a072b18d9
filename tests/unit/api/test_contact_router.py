"""Unit tests for the contact form."""

import pytest
from fastapi.testclient import TestClient

from tests.fixtures.dummies import RecordingEmailService


@pytest.fixture
def message() -> dict:
    return {
        "name": "Pedro Alves",
        "email": "pedro@cliente.com.br",
        "phone": "(11) 91234-5678",
        "subject": "Troca de tamanho",
        "message": "Gostaria de trocar o tênis pelo tamanho 41.",
    }


class TestContact:
    def test_message_forwarded_to_store(
        self, client: TestClient, message: dict, email_service: RecordingEmailService
    ):
        response = client.post("/api/contact", json=message)

        assert response.status_code == 200
        sent = email_service.sent[0]
        assert sent["to"] == "contato@loja.com.br"
        assert sent["subject"] == "[Contato] Troca de tamanho"
        assert sent["reply_to"] == "pedro@cliente.com.br"

    def test_markup_is_refused(self, client: TestClient, message: dict, email_service: RecordingEmailService):
        message["message"] = '<iframe src="https://evil.example"></iframe> olá'

        response = client.post("/api/contact", json=message)

        assert response.status_code == 403
        assert email_service.sent == []

    def test_short_message(self, client: TestClient, message: dict):
        message["message"] = "oi"

        assert client.post("/api/contact", json=message).status_code == 400

    def test_delivery_failure_is_bad_gateway(
        self, client: TestClient, message: dict, email_service: RecordingEmailService
    ):
        email_service.fail = True

        response = client.post("/api/contact", json=message)

        assert response.status_code == 502
