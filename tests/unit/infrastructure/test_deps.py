"""Unit tests for HTTP dependencies."""

import pytest
from fastapi import HTTPException

from src.storefront.api.http.deps import (
    auth_cookie_settings,
    enforce_origin,
    extract_token,
    is_origin_allowed,
    normalize_origin,
    require_csrf,
)
from src.storefront.core.security import generate_csrf_token
from src.storefront.core.services.auth import JwtService
from src.storefront.core.services.security_log import SecurityEventType, SecurityLogger
from src.storefront.runtime.config.config_data import AppConfig, ConfigData
from src.storefront.runtime.context import get_config, with_context

PRODUCTION = ConfigData(app=AppConfig(environment="production"))


class TestExtractToken:
    def test_cookie_wins(self, request_factory):
        cookie = get_config().security.auth_cookie_name
        request = request_factory({"Cookie": f"{cookie}=from-cookie", "Authorization": "Bearer from-header"})

        assert extract_token(request) == "from-cookie"

    def test_bearer_header(self, request_factory):
        assert extract_token(request_factory({"Authorization": "Bearer abc.def"})) == "abc.def"

    def test_missing_or_malformed(self, request_factory):
        assert extract_token(request_factory()) is None
        assert extract_token(request_factory({"Authorization": "Basic dXNlcg=="})) is None
        assert extract_token(request_factory({"Authorization": "Bearer  "})) is None


class TestOrigins:
    def test_normalize_origin(self):
        assert normalize_origin("HTTPS://Loja.Test") == ("https", "loja.test", 443)
        assert normalize_origin("http://localhost:3000/path") == ("http", "localhost", 3000)

    def test_allowed_origins(self):
        assert is_origin_allowed("http://localhost:3000")
        assert is_origin_allowed("http://localhost:3000/checkout")
        assert not is_origin_allowed("https://evil.test")

    def test_not_enforced_in_test_environment(self, request_factory):
        enforce_origin(request_factory({"Origin": "https://evil.test"}))

    def test_safe_methods_skip_check(self, request_factory):
        with with_context(PRODUCTION):
            enforce_origin(request_factory({"Origin": "https://evil.test"}, method="GET"))

    @pytest.mark.parametrize(
        "headers,detail",
        [
            ({"Origin": "https://evil.test"}, "Origin not allowed"),
            ({"Origin": "null"}, "Origin not allowed"),
            ({}, "Missing or invalid Origin"),
            ({"Referer": "https://evil.test/page"}, "Referer origin not allowed"),
        ],
    )
    def test_rejected_in_production(self, request_factory, headers, detail):
        with with_context(PRODUCTION):
            with pytest.raises(HTTPException) as exc_info:
                enforce_origin(request_factory(headers))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == detail

    def test_allowed_in_production(self, request_factory):
        with with_context(PRODUCTION):
            enforce_origin(request_factory({"Origin": "http://localhost:3000"}))
            enforce_origin(request_factory({"Referer": "http://localhost:3000/carrinho"}))


class TestCsrf:
    def test_valid_token(self, request_factory, jwt_service: JwtService, security_logger: SecurityLogger):
        token = jwt_service.issue("user-1", session_id="sid-1")
        header = get_config().security.csrf_header_name
        request = request_factory({"Authorization": f"Bearer {token}", header: generate_csrf_token("sid-1")})

        with with_context(PRODUCTION):
            require_csrf(request, jwt_service, security_logger)

    def test_token_for_other_session(
        self, request_factory, jwt_service: JwtService, security_logger: SecurityLogger
    ):
        token = jwt_service.issue("user-1", session_id="sid-1")
        header = get_config().security.csrf_header_name
        request = request_factory({"Authorization": f"Bearer {token}", header: generate_csrf_token("sid-2")})

        with with_context(PRODUCTION):
            with pytest.raises(HTTPException) as exc_info:
                require_csrf(request, jwt_service, security_logger)

        assert exc_info.value.status_code == 403
        assert security_logger.events(SecurityEventType.CSRF_VIOLATION)[0].user_id == "user-1"

    def test_requires_session(self, request_factory, jwt_service: JwtService, security_logger: SecurityLogger):
        with with_context(PRODUCTION):
            with pytest.raises(HTTPException) as exc_info:
                require_csrf(request_factory(), jwt_service, security_logger)

        assert exc_info.value.status_code == 401

    def test_skipped_outside_production(self, request_factory, jwt_service: JwtService, security_logger):
        require_csrf(request_factory(), jwt_service, security_logger)


class TestCookieSettings:
    def test_cookie_not_secure_outside_production(self):
        settings = auth_cookie_settings()

        assert settings["httponly"] is True
        assert settings["secure"] is False
        assert settings["max_age"] == get_config().jwt.expires_hours * 3600

    def test_cookie_secure_in_production(self):
        with with_context(PRODUCTION):
            assert auth_cookie_settings()["secure"] is True
