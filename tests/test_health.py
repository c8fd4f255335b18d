from fastapi.testclient import TestClient

from main import app


def test_ping(client):
    response = client.get("/api/ping")

    assert response.status_code == 200
    assert response.text == "pong"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["version"] == "1.0.0"


def test_metrics_exposes_request_counters(client):
    client.get("/api/ping")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "wallet_credits_total" in response.text


def test_responses_carry_trace_and_timing_headers(client):
    response = client.get("/api/ping")

    assert response.headers["X-Request-ID"]
    assert float(response.headers["X-Process-Time"]) >= 0


def test_lifespan_builds_context():
    with TestClient(app) as client:
        assert client.get("/api/ping").text == "pong"
        context = app.state.context

    assert context.payments.secret_key == "sk_test_123"
    assert context.payments.currency == "usd"
