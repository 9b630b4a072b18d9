"""Unit tests for the health endpoints."""

from fastapi.testclient import TestClient

from src.storefront.api.http.app_data import ApplicationDependencies


class TestHealth:
    def test_liveness(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness(self, client: TestClient):
        response = client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["environment"] == "test"
        assert body["checks"]["database"] == {"status": "healthy", "type": "sqlite"}
        assert body["checks"]["encryption"]["status"] == "enabled"
        assert body["checks"]["rate_limiter"]["status"] == "disabled"

    def test_database_down(self, client: TestClient, app_dependencies: ApplicationDependencies, monkeypatch):
        monkeypatch.setattr(app_dependencies.database_service, "health_check", lambda: False)

        assert client.get("/health/ready").status_code == 503
        assert client.get("/health/database").json()["status"] == "unhealthy"

    def test_security_headers(self, client: TestClient):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers
        assert response.headers["X-Request-ID"]
