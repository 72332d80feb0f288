from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_model_gateway
from app.api.routes import diagnostics
from app.core.errors import ModelUnavailable
from app.main import app
from conftest import FakeGateway


@pytest.fixture()
def gateway():
    return FakeGateway(response={"status": "success", "message": "Vertex AI connection is working"})


@pytest.fixture()
def client(gateway, monkeypatch):
    monkeypatch.setattr(
        diagnostics,
        "describe_default_credentials",
        lambda: {"projectId": "test-project", "clientEmail": "svc@test", "authType": "Credentials", "hasCredentials": True},
    )
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_test_ai_reports_success(client) -> None:
    response = client.get("/test-ai")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["model"] == "gemini-test"
    assert body["result"]["status"] == "success"


def test_test_ai_reports_failure_with_200(client, gateway) -> None:
    gateway.error = ModelUnavailable("Vertex AI client is not configured")

    response = client.get("/test-ai")

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["errorType"] == "ModelUnavailable"


def test_vertex_ai_test_success(client) -> None:
    response = client.get("/api/v1/vertex-ai-test")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "SUCCESS"
    assert body["recommendations"] == []
    assert body["serviceAccount"]["clientEmail"] == "svc@test"
    assert body["environment"]["GEMINI_MODEL"]


def test_vertex_ai_test_failure_returns_troubleshooting(client, gateway) -> None:
    gateway.error = ModelUnavailable("Permission denied")

    response = client.get("/api/v1/vertex-ai-test")

    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "FAILED"
    assert body["recommendations"] == diagnostics.TROUBLESHOOTING_STEPS
    assert body["vertexAITest"]["error"] == "Permission denied"


def test_environment_info_marks_missing_values(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics.settings, "google_cloud_project", None)
    monkeypatch.setattr(diagnostics.settings, "google_application_credentials", None)
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)

    info = diagnostics.environment_info()

    assert info["PROJECT_ID"] == "NOT_SET"
    assert info["HAS_GOOGLE_CREDENTIALS"] is False


def test_missing_gateway_is_internal_error() -> None:
    app.dependency_overrides.clear()
    client = TestClient(app)
    app.state.model_gateway = None

    response = client.get("/test-ai")

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
