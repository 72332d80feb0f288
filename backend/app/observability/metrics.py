"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.observability.tracing import trace

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short Opik trace when Opik is enabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    logger.debug("metric %s=%s", name, value)
    with trace(f"metric:{name}", metadata=payload):
        pass
