from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from app.core.config import settings
from app.observability import client as opik_client_module
from app.services.model_gateway import ModelGateway

TEST_API_KEY = "test-wellfin-key"


class FakeGateway(ModelGateway):
    """Gateway double returning a canned object or raising a canned error."""

    def __init__(self, response: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
        super().__init__(None, model="gemini-test", project="test-project", location="asia-northeast1")
        self.response = response
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    async def invoke(self, prompt: str, operation: str) -> Dict[str, Any]:
        self.calls.append((operation, prompt))
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.response or {})


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    monkeypatch.setattr(settings, "wellfin_api_key", TEST_API_KEY)
    monkeypatch.setattr(settings, "opik_enabled", False)
    monkeypatch.setattr(settings, "schedule_timezone", "UTC")
    opik_client_module.reset_opik_client()
    yield
    opik_client_module.reset_opik_client()


@pytest.fixture()
def auth_headers() -> Dict[str, str]:
    return {"X-API-Key": TEST_API_KEY}
