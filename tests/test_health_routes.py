from __future__ import annotations

from fastapi.testclient import TestClient


def test_root_returns_service_metadata(client: TestClient):
    resp = client.get("/")

    assert resp.status_code == 200
    data = resp.json()
    assert data["service"] == "Webhook Relay"
    assert data["version"] == "1.0.0"
    assert data["endpoints"] == {"health": "/health", "webhook": "/webhook/github"}


def test_health_reports_configuration_flags(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "destination_configured": True,
        "secret_configured": True,
    }


def test_health_does_not_reveal_destination_or_secret(client: TestClient):
    body = client.get("/health").text

    assert "destination.internal" not in body
    assert "test-webhook-secret" not in body


def test_health_is_not_rate_limited(make_app):
    with TestClient(make_app(rate_limit_requests=1)) as limited:
        statuses = {limited.get("/health").status_code for _ in range(5)}

    assert statuses == {200}


def test_openapi_marks_only_webhook_as_signed(client: TestClient):
    schema = client.get("/openapi.json").json()

    assert "WebhookSignature" in schema["components"]["securitySchemes"]
    assert schema["paths"]["/webhook/github"]["post"]["security"] == [{"WebhookSignature": []}]
    assert "security" not in schema["paths"]["/health"]["get"]
