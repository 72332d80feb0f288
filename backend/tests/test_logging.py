from __future__ import annotations

import json
import logging
import sys

from app.core.context import request_id_ctx_var
from app.core.logging import JsonFormatter, RequestContextFilter


def _record(message: str = "hello %s", args=("world",), exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("app.test", logging.WARNING, __file__, 10, message, args, exc_info)


def test_context_filter_adds_request_fields() -> None:
    record = _record()
    token = request_id_ctx_var.set("req-42")
    try:
        assert RequestContextFilter().filter(record) is True
    finally:
        request_id_ctx_var.reset(token)

    assert record.request_id == "req-42"
    assert record.api_user == "-"


def test_json_formatter_emits_cloud_logging_fields() -> None:
    record = _record()
    RequestContextFilter().filter(record)

    entry = json.loads(JsonFormatter().format(record))

    assert entry["severity"] == "WARNING"
    assert entry["message"] == "hello world"
    assert entry["logger"] == "app.test"
    assert entry["request_id"] == "-"
    assert "stack" not in entry


def test_json_formatter_includes_stack_and_unicode() -> None:
    try:
        raise RuntimeError("失敗")
    except RuntimeError:
        record = _record("タスク %s", ("分析",), sys.exc_info())

    output = JsonFormatter().format(record)
    entry = json.loads(output)

    assert "タスク 分析" in output
    assert "RuntimeError" in entry["stack"]
