# tests/unit/logging/test_unit_context.py — v1
"""Tests for logging/context.py — context variables."""

from __future__ import annotations

import asyncio

import pytest

from matingest.logging.context import (
    clear_context,
    get_context,
    set_batch_context,
    set_item_context,
)


class TestLogContext:
    def test_empty_by_default(self):
        clear_context()
        assert get_context().as_dict() == {}

    def test_batch_and_item(self):
        set_batch_context("b1", phase="resolve")
        set_item_context("item-1")
        ctx = get_context()
        assert ctx.batch_id == "b1"
        assert ctx.phase == "resolve"
        assert ctx.as_dict() == {"batch_id": "b1", "item_id": "item-1", "phase": "resolve"}

    def test_clear(self):
        set_batch_context("b1")
        clear_context()
        assert get_context().batch_id is None

    @pytest.mark.asyncio
    async def test_item_context_is_per_task(self):
        seen: dict[str, str | None] = {}

        async def worker(item_id: str) -> None:
            set_item_context(item_id)
            await asyncio.sleep(0)
            seen[item_id] = get_context().item_id

        await asyncio.gather(worker("a"), worker("b"))
        assert seen == {"a": "a", "b": "b"}
