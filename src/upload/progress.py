# src/upload/progress.py — v1
"""Progress observers for the upload phase.

The executor calls ``on_progress`` once per attempted item, in submission
order; how progress is rendered is up to the observer.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol, runtime_checkable

from matingest.core.models import ItemOutcome

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressObserver(Protocol):
    def on_progress(self, completed: int, total: int, outcome: ItemOutcome) -> None: ...


class CallbackObserver:
    """Adapts a plain ``(completed, total, outcome)`` callable."""

    def __init__(self, callback: Callable[[int, int, ItemOutcome], None]) -> None:
        self._callback = callback

    def on_progress(self, completed: int, total: int, outcome: ItemOutcome) -> None:
        self._callback(completed, total, outcome)


class LoggingObserver:
    """Logs one line per completed item."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def on_progress(self, completed: int, total: int, outcome: ItemOutcome) -> None:
        if outcome.success:
            logger.log(
                self._level, "[%d/%d] created %r -> %s",
                completed, total, outcome.title, outcome.result_id,
            )
        else:
            logger.log(
                max(self._level, logging.WARNING), "[%d/%d] failed %r: %s",
                completed, total, outcome.title, outcome.error,
            )


class NullObserver:
    def on_progress(self, completed: int, total: int, outcome: ItemOutcome) -> None:
        return None
