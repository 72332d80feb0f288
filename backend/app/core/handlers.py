"""Exception handlers producing the public error bodies."""
from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import AuthError, WellFinError
from app.services.execution_report import utc_now_iso

logger = logging.getLogger(__name__)

CUSTOM_VALIDATION_CODES = {
    "missing_required_field": "MISSING_REQUIRED_FIELD",
    "invalid_task_format": "INVALID_TASK_FORMAT",
    "invalid_field_format": "INVALID_FIELD_FORMAT",
}


def _field_name(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return ".".join(parts) if parts else "body"


def validation_error_body(errors: Sequence[Dict[str, Any]]) -> Dict[str, str]:
    """Map the first pydantic error onto ``{error, code}``."""
    if not errors:
        return {"error": "Invalid request", "code": "INVALID_FIELD_FORMAT"}
    first = errors[0]
    error_type = first.get("type", "")
    if error_type in CUSTOM_VALIDATION_CODES:
        return {"error": first.get("msg", "Invalid request"), "code": CUSTOM_VALIDATION_CODES[error_type]}
    field = _field_name(first.get("loc", ()))
    if error_type == "missing":
        return {"error": f"{field} is required", "code": "MISSING_REQUIRED_FIELD"}
    return {"error": f"{field}: {first.get('msg', 'invalid value')}", "code": "INVALID_FIELD_FORMAT"}


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = validation_error_body(exc.errors())
    logger.warning("Request validation failed (path=%s, code=%s): %s", request.url.path, body["code"], body["error"])
    return JSONResponse(status_code=400, content={**body, "timestamp": utc_now_iso()})


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "message": exc.detail})


async def handle_wellfin_error(request: Request, exc: WellFinError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed (path=%s, code=%s): %s", request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code, "timestamp": utc_now_iso()},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error (path=%s)", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": str(exc) or "Internal server error", "code": "INTERNAL_ERROR", "timestamp": utc_now_iso()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(WellFinError, handle_wellfin_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
