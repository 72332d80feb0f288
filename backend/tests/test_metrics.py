"""Tests for metrics and tracing helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from app.core.context import api_user_ctx_var, request_id_ctx_var
from app.observability import metrics
from app.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.updates: list[Dict[str, Any]] = []
        self.ended = False

    def update(self, **kwargs: Any) -> None:
        self.updates.append(kwargs)

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


@pytest.fixture()
def dummy_client(monkeypatch) -> _DummyClient:
    client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: client)
    return client


def test_log_metric_closes_trace(dummy_client) -> None:
    metrics.log_metric("gemini.call.latency_ms", 42, metadata={"operation": "task_analysis"})

    assert dummy_client.traces, "Metric call should record a trace"
    recorded = dummy_client.traces[0]
    assert recorded.name == "metric:gemini.call.latency_ms"
    assert recorded.metadata["value"] == 42
    assert recorded.metadata["operation"] == "task_analysis"
    assert recorded.ended is True


def test_trace_picks_up_request_context(dummy_client) -> None:
    request_token = request_id_ctx_var.set("req-123")
    user_token = api_user_ctx_var.set("api-user-abcdefgh")
    try:
        with tracing.trace("analyze_task"):
            pass
    finally:
        request_id_ctx_var.reset(request_token)
        api_user_ctx_var.reset(user_token)

    metadata = dummy_client.traces[0].metadata
    assert metadata["request_id"] == "req-123"
    assert metadata["api_user"] == "api-user-abcdefgh"


def test_trace_records_error_and_reraises(dummy_client) -> None:
    with pytest.raises(ValueError):
        with tracing.trace("gemini.task_analysis"):
            raise ValueError("boom")

    recorded = dummy_client.traces[0]
    assert recorded.updates[0]["error_info"]["exception_type"] == "ValueError"
    assert recorded.ended is True


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("anything") as span:
        tracing.annotate(span, keys=["a"])
        assert span is None


def test_preview_bounds_text() -> None:
    assert tracing.preview(None) == ""
    assert tracing.preview("short", limit=10) == "short"
    assert tracing.preview("x" * 20, limit=10) == "x" * 10 + "..."
