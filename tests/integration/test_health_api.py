"""
Integration tests for health, readiness and metrics endpoints.
"""
from fastapi.testclient import TestClient


class TestHealthAPI:
    def test_health(self, test_client: TestClient):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_readiness(self, test_client: TestClient):
        response = test_client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["circuit_breaker"] == {"name": "stripe", "state": "closed", "failure_count": 0}
        assert data["collections"]["tenants"] == 4
        assert data["collections"]["video-progress"] == 3

    def test_metrics_exposed(self, test_client: TestClient, acme_headers):
        test_client.get("/api/lms/videos", headers=acme_headers)

        response = test_client.get("/metrics")

        assert response.status_code == 200
        assert "http_request" in response.text
