from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_model_gateway
from app.core.config import settings
from app.core.errors import ModelUnavailable
from app.core.security import derive_api_user, is_valid_api_key
from app.main import app
from conftest import FakeGateway

PROFILE_BODY = {"userProfile": {"preferences": {"workStyle": "morning"}}}


@pytest.fixture()
def client():
    gateway = FakeGateway(error=ModelUnavailable("offline"))
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_missing_api_key_is_rejected(client) -> None:
    response = client.post("/api/v1/recommendations", json=PROFILE_BODY)

    assert response.status_code == 401
    assert response.json() == {"error": "API key required", "message": "Please provide X-API-Key header"}


def test_missing_api_key_rejected_before_body_validation(client) -> None:
    response = client.post("/api/v1/recommendations", json={})

    assert response.status_code == 401
    assert response.json()["error"] == "API key required"


def test_unknown_api_key_is_rejected(client) -> None:
    response = client.post("/api/v1/recommendations", json=PROFILE_BODY, headers={"X-API-Key": "not-a-real-key"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid API key", "message": "The provided API key is not valid"}


def test_configured_api_key_is_accepted(client, auth_headers) -> None:
    response = client.post("/api/v1/recommendations", json=PROFILE_BODY, headers=auth_headers)

    assert response.status_code == 200


def test_development_key_can_be_disabled(client, monkeypatch) -> None:
    headers = {"X-API-Key": "dev-secret-key"}
    assert client.post("/api/v1/recommendations", json=PROFILE_BODY, headers=headers).status_code == 200

    monkeypatch.setattr(settings, "dev_api_key", "")
    response = client.post("/api/v1/recommendations", json=PROFILE_BODY, headers=headers)

    assert response.status_code == 401


def test_exempt_endpoints_need_no_key(client) -> None:
    assert client.get("/health").status_code == 200
    assert client.get("/").status_code == 200
    assert client.get("/test-ai").status_code == 200


def test_derived_api_user_uses_key_prefix() -> None:
    assert derive_api_user("abcdefghijkl") == "api-user-abcdefgh"


def test_key_comparison() -> None:
    assert is_valid_api_key("secret", ["other", "secret"])
    assert not is_valid_api_key("secret", [])
    assert not is_valid_api_key("secre", ["secret"])
