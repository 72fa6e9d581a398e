# tests/unit/upload/test_unit_progress.py — v1
"""Tests for upload/progress.py — observer adapters."""

from __future__ import annotations

import logging

from matingest.core.models import ItemOutcome
from matingest.upload.progress import CallbackObserver, LoggingObserver, NullObserver, ProgressObserver

OK = ItemOutcome(index=0, item_id="a", title="Intro", success=True, result_id="m-1")
FAILED = ItemOutcome(index=1, item_id="b", title="Notes", success=False, error="HTTP 500")


class TestObservers:
    def test_protocol(self):
        for observer in (CallbackObserver(lambda *a: None), LoggingObserver(), NullObserver()):
            assert isinstance(observer, ProgressObserver)

    def test_callback(self):
        calls = []
        CallbackObserver(lambda *a: calls.append(a)).on_progress(1, 2, OK)
        assert calls == [(1, 2, OK)]

    def test_logging(self, caplog):
        caplog.set_level(logging.INFO, logger="matingest.upload.progress")
        observer = LoggingObserver()
        observer.on_progress(1, 2, OK)
        observer.on_progress(2, 2, FAILED)
        assert "[1/2] created 'Intro' -> m-1" in caplog.text
        assert "[2/2] failed 'Notes': HTTP 500" in caplog.text
