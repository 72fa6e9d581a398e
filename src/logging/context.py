# src/logging/context.py — v1
"""Contextual logging support — attach batch_id, item_id, phase to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging. Each asyncio task gets its own
# copy, so a resolver task can tag its records with its item_id without
# leaking into sibling tasks.
_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_item_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_id", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    batch_id: str | None = None
    item_id: str | None = None
    phase: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        batch_id=_batch_id.get(),
        item_id=_item_id.get(),
        phase=_phase.get(),
    )


def set_batch_context(batch_id: str, phase: str | None = None) -> None:
    """Set batch-level context (called once per parse/resolve/upload phase)."""
    _batch_id.set(batch_id)
    _phase.set(phase)


def set_item_context(item_id: str | None) -> None:
    """Set item-level context (called per resolver task or upload attempt)."""
    _item_id.set(item_id)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_id.set(None)
    _item_id.set(None)
    _phase.set(None)
