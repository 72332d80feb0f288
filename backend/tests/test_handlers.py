from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.api.schemas.schedule import OptimizeScheduleRequest
from app.core import errors
from app.core.handlers import validation_error_body


def _body_for(payload: dict) -> dict:
    with pytest.raises(PydanticValidationError) as excinfo:
        OptimizeScheduleRequest.model_validate(payload)
    return validation_error_body(excinfo.value.errors())


def test_schema_errors_map_to_client_codes() -> None:
    assert _body_for({}) == {"error": "tasks array is required", "code": "MISSING_REQUIRED_FIELD"}

    too_long = _body_for({"tasks": [{"title": "a", "priority": "high", "estimatedDuration": 20000}]})
    assert too_long["code"] == "INVALID_TASK_FORMAT"
    assert "10080" in too_long["error"]


def test_missing_and_malformed_fields() -> None:
    missing = validation_error_body([{"type": "missing", "loc": ("body", "userInput"), "msg": "Field required"}])
    assert missing == {"error": "userInput is required", "code": "MISSING_REQUIRED_FIELD"}

    malformed = validation_error_body([{"type": "int_parsing", "loc": ("body", "limit"), "msg": "bad int"}])
    assert malformed == {"error": "limit: bad int", "code": "INVALID_FIELD_FORMAT"}


def test_client_errors_are_not_modelled_as_exceptions() -> None:
    client_errors = [
        cls
        for cls in vars(errors).values()
        if isinstance(cls, type) and issubclass(cls, errors.WellFinError) and cls.status_code == 400
    ]

    assert client_errors == []
