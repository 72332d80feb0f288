"""Shared-secret API key gate."""
from __future__ import annotations

import hmac
import logging

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from app.core.config import settings
from app.core.context import api_user_ctx_var
from app.core.errors import AuthError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(
    name=API_KEY_HEADER,
    auto_error=False,
    description="Shared secret issued to the mobile client.",
)


def derive_api_user(api_key: str) -> str:
    """Pseudo-identity used for logging only."""
    return f"api-user-{api_key[:8]}"


def is_valid_api_key(api_key: str, valid_keys: list[str]) -> bool:
    return any(hmac.compare_digest(api_key.encode(), key.encode()) for key in valid_keys)


async def require_api_key(request: Request, api_key: str | None = Security(api_key_header)) -> str:
    """Reject the request unless X-API-Key matches a configured secret."""
    if not api_key:
        logger.error(
            "No API key provided (path=%s, user_agent=%s)",
            request.url.path,
            request.headers.get("user-agent", "-"),
        )
        raise AuthError("API key required", "Please provide X-API-Key header")

    valid_keys = settings.valid_api_keys
    if not is_valid_api_key(api_key, valid_keys):
        logger.error(
            "Invalid API key (prefix=%s..., valid_key_count=%s)",
            api_key[:8],
            len(valid_keys),
        )
        raise AuthError("Invalid API key", "The provided API key is not valid")

    api_user = derive_api_user(api_key)
    request.state.api_user = api_user
    api_user_ctx_var.set(api_user)
    logger.info("API key authentication successful (user=%s, path=%s)", api_user, request.url.path)
    return api_user
