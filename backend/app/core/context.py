"""Per-request context utilities."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
api_user_ctx_var: ContextVar[str | None] = ContextVar("api_user", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_api_user() -> str | None:
    """Return the pseudo-identity attached by the API key check, if any."""
    return api_user_ctx_var.get()
