"""Presentation-only summaries of what an AI operation did."""
from __future__ import annotations

import math
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


@dataclass
class ExecutionAction:
    type: str
    description: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecutionReport:
    """Actions taken plus free-text notes, derived from an operation's output."""

    actions: List[ExecutionAction] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    status: str = "completed"

    def add_action(self, action_type: str, description: str, **details: Any) -> None:
        self.actions.append(ExecutionAction(type=action_type, description=description, details=details))

    def add_note(self, note: str) -> None:
        self.notes.append(note)

    def action_types(self) -> List[str]:
        return [action.type for action in self.actions]


def generate_id(prefix: str) -> str:
    """Time-based id with a random suffix, e.g. ``task_1717000000000_k3j9x0a1b``."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def elapsed_seconds(start: float, now: float | None = None) -> float:
    """Seconds since a perf_counter() reading, rounded to 2 decimals."""
    end = time.perf_counter() if now is None else now
    return round_half_up(max(end - start, 0.0), 2)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
