# src/resolve/coordinator.py — v1
"""Metadata resolution coordinator.

Runs one asyncio task per item. Within a task the title lookup and the
preview step run concurrently, each under its own timeout. Every outcome
(value, error, timeout) is funnelled into the ledger tagged with the
generation captured when resolution began, so results for an item that
was edited or removed in the meantime are dropped there.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from matingest.core.errors import LookupFailed
from matingest.core.models import PendingItem
from matingest.ledger.ledger import ItemLedger
from matingest.logging.context import set_item_context
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult
from matingest.resolve.resolver_factory import ResolverRegistry

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Schedules and tracks per-item resolution tasks."""

    def __init__(
        self,
        ledger: ItemLedger,
        registry: ResolverRegistry | None = None,
        timeout_s: float = 8.0,
    ) -> None:
        self._ledger = ledger
        self._registry = registry or ResolverRegistry()
        self._timeout_s = timeout_s
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def in_flight(self) -> list[str]:
        return [item_id for item_id, task in self._tasks.items() if not task.done()]

    def schedule(self, item_ids: Iterable[str] | None = None) -> list[str]:
        """Start resolution for pending items. Must be called inside a running loop.

        Args:
            item_ids: Items to resolve; defaults to every pending item.

        Returns:
            Ids for which a task was started.

        Raises:
            RuntimeError: No event loop is running.
        """
        # Raises RuntimeError outside a loop, before any item changes state.
        loop = asyncio.get_running_loop()
        if item_ids is None:
            candidates = [i.id for i in self._ledger.by_status("pending")]
        else:
            candidates = [
                i for i in item_ids
                if i in self._ledger and self._ledger.get(i).status == "pending"
            ]

        started: list[str] = []
        for item_id in candidates:
            self.cancel(item_id)
            generation = self._ledger.begin_resolution(item_id)
            task = loop.create_task(
                self._resolve(item_id, generation), name=f"resolve-{item_id}",
            )
            self._tasks[item_id] = task
            task.add_done_callback(lambda t, i=item_id: self._forget(i, t))
            started.append(item_id)

        if started:
            logger.info("Scheduled resolution for %d item(s)", len(started))
        return started

    def cancel(self, item_id: str) -> bool:
        """Cancel one item's in-flight task. Other items are unaffected."""
        task = self._tasks.pop(item_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled resolution for %s", item_id)
        return True

    async def wait(self) -> None:
        """Block until every scheduled task has finished."""
        while True:
            pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel everything still running and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, item_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(item_id) is task:
            del self._tasks[item_id]

    # --- Per-item task ---

    async def _resolve(self, item_id: str, generation: int) -> None:
        set_item_context(item_id)
        if item_id not in self._ledger:
            return
        item = self._ledger.get(item_id)
        if item.generation != generation:
            return
        resolver = self._registry.for_item(item)
        logger.debug("Resolving with %s", type(resolver).__name__)
        try:
            await asyncio.gather(
                self._title_step(resolver, item, generation),
                self._preview_step(resolver, item, generation),
            )
        finally:
            # Converge even if a step was cancelled or the ledger rejected it.
            self._ledger.settle_failed(item_id, generation)
            set_item_context(None)

    async def _title_step(
        self, resolver: BaseResolver, item: PendingItem, generation: int,
    ) -> None:
        if not item.needs_title:
            return
        title: str | None = None
        try:
            title = await asyncio.wait_for(resolver.resolve_title(item), self._timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Title lookup timed out after %.1fs", self._timeout_s)
        except LookupFailed as exc:
            logger.warning("Title lookup failed: %s", exc)
        except Exception:
            logger.warning("Title lookup raised", exc_info=True)
        self._ledger.apply_title(item.id, generation, title)

    async def _preview_step(
        self, resolver: BaseResolver, item: PendingItem, generation: int,
    ) -> None:
        result: PreviewResult = NO_PREVIEW
        try:
            result = await asyncio.wait_for(resolver.resolve_preview(item), self._timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Preview resolution timed out after %.1fs", self._timeout_s)
        except LookupFailed as exc:
            logger.warning("Preview resolution failed: %s", exc)
        except Exception:
            logger.warning("Preview resolution raised", exc_info=True)
        self._ledger.apply_preview(item.id, generation, result.preview, result.page_count)
