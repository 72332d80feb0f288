"""Error taxonomy shared by routes, services and exception handlers."""
from __future__ import annotations


class WellFinError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class AuthError(WellFinError):
    """X-API-Key header is absent or not recognised."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, error: str, message: str) -> None:
        super().__init__(error)
        self.detail = message


class NotFoundError(WellFinError):
    status_code = 404
    code = "NOT_FOUND"


class InternalError(WellFinError):
    status_code = 500
    code = "INTERNAL_ERROR"


class ProviderError(WellFinError):
    """An upstream provider (model or messaging backend) failed."""

    status_code = 500
    code = "PROVIDER_ERROR"


class ModelUnavailable(ProviderError):
    """The model call itself failed (auth, quota, network, no client)."""


class EmptyResponse(ProviderError):
    """The model returned no candidates or no text."""


class ContentBlocked(ProviderError):
    """The prompt or the response was withheld by safety filters."""


class MalformedOutput(ProviderError):
    """No JSON object could be located in the model text."""


class InvalidJson(ProviderError):
    """A JSON-looking span was found but did not parse."""


class IncompleteResult(ProviderError):
    """Parsed model output lacks fields the operation requires."""


class IncompleteAnalysis(IncompleteResult):
    """Task analysis output lacks a title or description."""


class MessagingError(ProviderError):
    """Push notification provider failed."""

    code = "NOTIFICATION_FAILED"
