"""Tracing utilities wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from app.core.context import get_api_user, get_request_id
from app.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)

TRACE_TEXT_LIMIT = 500


def preview(text: str | None, limit: int = TRACE_TEXT_LIMIT) -> str:
    """Bound free text before it reaches logs or trace metadata."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Open an Opik trace around a block.

    Request id and API identity are taken from the logging context when not
    passed explicitly. When Opik is disabled the context yields None.
    """
    client = get_opik_client()
    opik_trace: Optional["Trace"] = None

    if client:
        trace_metadata = dict(metadata or {})
        trace_metadata.setdefault("request_id", request_id or get_request_id())
        api_user = get_api_user()
        if api_user:
            trace_metadata.setdefault("api_user", api_user)
        try:
            opik_trace = client.trace(name=name, metadata=trace_metadata)
        except Exception as exc:  # pragma: no cover - remote SDK guard
            logger.debug("Unable to start Opik trace %s: %s", name, exc)
            opik_trace = None

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)


def annotate(span: Optional["Trace"], **metadata: Any) -> None:
    """Attach extra metadata to an open trace; no-op when tracing is off."""
    if not span:
        return
    try:
        span.update(metadata=metadata)
    except Exception:  # pragma: no cover - remote SDK guard
        logger.debug("Unable to annotate Opik trace", exc_info=True)
