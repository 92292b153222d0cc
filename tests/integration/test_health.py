"""Integration tests for health check endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_status_and_version(self, client: TestClient) -> None:
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["timestamp"] is not None


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    def test_readiness_returns_200_when_healthy(self, client: TestClient) -> None:
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness_reports_each_dependency(self, client: TestClient) -> None:
        """Test that the store and the cache are checked separately."""
        data = client.get("/health/ready").json()

        check_names = [check["name"] for check in data["checks"]]
        assert check_names == ["cassandra", "cache"]
        assert all(check["latency_ms"] is not None for check in data["checks"])

    def test_readiness_returns_503_when_database_unhealthy(self, client: TestClient) -> None:
        with patch(
            "accounts.api.routes.health.check_database_connection",
            return_value={"healthy": False, "error": "Connection timeout"},
        ):
            response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        db_check = next(c for c in data["checks"] if c["name"] == "cassandra")
        assert db_check["healthy"] is False
        assert db_check["error"] == "Connection timeout"

    def test_readiness_returns_503_when_cache_unhealthy(self, client: TestClient) -> None:
        with patch(
            "accounts.api.routes.health.check_cache_connection",
            return_value={"healthy": False, "error": "Cache ping failed"},
        ):
            response = client.get("/health/ready")

        assert response.status_code == 503


class TestErrorResponseSchema:
    """Tests for error response format."""

    def test_unknown_route_returns_404(self, client: TestClient) -> None:
        response = client.get("/nonexistent-endpoint")
        assert response.status_code == 404

    def test_unhandled_error_is_formatted(self, client: TestClient) -> None:
        with patch(
            "accounts.api.routes.health.check_database_connection",
            side_effect=RuntimeError("boom"),
        ):
            response = client.get("/health/ready")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_error"
        assert data["message"] == "An unexpected error occurred"
        assert "timestamp" in data
