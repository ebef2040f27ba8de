"""
Health, readiness and error envelope tests
"""

from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test /health endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_ready_endpoint(client: TestClient):
    """Redis is not required while rate limiting is disabled"""
    response = client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["redis"] == "not_required"


def test_root_endpoint(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "LandVest Core API"


def test_trace_id_in_error_response(client: TestClient):
    """Test that trace_id exists in error responses"""
    response = client.get("/nonexistent-endpoint")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert data["error"]["code"] == "HTTP_404"
    assert data["error"]["trace_id"] is not None
    # Check that trace_id is also in response header
    assert response.headers["X-Trace-ID"] == data["error"]["trace_id"]


def test_incoming_trace_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Trace-ID": "trace-from-client"})
    assert response.headers["X-Trace-ID"] == "trace-from-client"


def test_security_headers_present(client: TestClient):
    response = client.get("/health")
    assert response.headers.get("X-Content-Type-Options") == "nosniff"


def test_malformed_trace_id_is_replaced(client: TestClient):
    response = client.get("/health", headers={"X-Trace-ID": "bad id with spaces"})
    assert response.headers["X-Trace-ID"] != "bad id with spaces"
    assert len(response.headers["X-Trace-ID"]) == 32


def test_money_endpoints_are_not_cached(client: TestClient, user_headers: dict):
    response = client.get("/api/wallet/summary", headers=user_headers)
    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "no-store"

    assert "no-store" not in client.get("/health").headers.get("Cache-Control", "")
