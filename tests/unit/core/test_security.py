"""Unit tests for the shared security helpers."""

import time

import pytest

from src.storefront.core.security import (
    generate_csrf_token,
    generate_secure_token,
    get_client_ip,
    mask_cpf,
    mask_email,
    mask_phone,
    slugify,
    validate_csrf_token,
)


class TestCsrf:
    def test_token_validates_for_its_session(self):
        token = generate_csrf_token("session-1")

        assert validate_csrf_token("session-1", token)
        assert not validate_csrf_token("session-2", token)

    def test_expired_token_rejected(self):
        old_hour = int(time.time() // 3600) - 48
        token = generate_csrf_token("session-1", timestamp=old_hour)

        assert not validate_csrf_token("session-1", token, max_age_hours=24)

    def test_future_token_rejected(self):
        future_hour = int(time.time() // 3600) + 2
        token = generate_csrf_token("session-1", timestamp=future_hour)

        assert not validate_csrf_token("session-1", token)

    @pytest.mark.parametrize("token", [None, "", "no-colon", "abc:def"])
    def test_malformed_tokens_rejected(self, token):
        assert not validate_csrf_token("session-1", token)


class TestMasking:
    def test_mask_cpf(self):
        assert mask_cpf("529.982.247-25") == "529.***.***-25"
        assert mask_cpf("123") == "***.***.***-**"
        assert mask_cpf(None) is None

    def test_mask_email(self):
        assert mask_email("maria@example.com") == "m****@e******.com"
        assert mask_email("broken") == "***@***.***"

    def test_mask_phone(self):
        assert mask_phone("(11) 98765-4321") == "(11) ******4321"
        assert mask_phone("12345") == "*****"


class TestHelpers:
    def test_secure_token_length(self):
        assert len(generate_secure_token()) == 64
        assert generate_secure_token() != generate_secure_token()

    def test_slugify(self):
        assert slugify("Tênis Nike Air Max 90") == "tenis-nike-air-max-90"
        assert slugify("  --Olá,  Mundo!! ") == "ola-mundo"

    def test_slugify_falls_back_to_random(self):
        assert len(slugify("!!!")) == 8

    def test_client_ip_prefers_forwarded_header(self, request_factory):
        request = request_factory({"X-Forwarded-For": "198.51.100.4, 10.0.0.1"})

        assert get_client_ip(request) == "198.51.100.4"

    def test_client_ip_from_connection(self, request_factory):
        assert get_client_ip(request_factory()) == "203.0.113.7"
