"""API tests for operational endpoints."""


class TestOperationalEndpoints:
    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "Server is running"
        assert response.json()["health"] == "/health"

    def test_health_reports_database(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "Policy Query Assistant"
        assert body["database"]["connected"] is True

    def test_correlation_id_is_echoed(self, test_client):
        response = test_client.get("/", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_in_envelope(self, test_client):
        response = test_client.post(
            "/api/v1/auth/register",
            json={"email": "carol@example.com", "password": "secret123", "name": "Carol"},
            headers={"X-Correlation-ID": "req-42"},
        )

        assert response.json()["meta"]["request_id"] == "req-42"
