# src/upload/executor.py — v1
"""Upload executor: sequential submission of a ready batch.

Exactly one creation request is in flight at a time. A failed item is
recorded and the run moves on; nothing raised by the creation call
escapes the run. Once started, a run always goes to the end of the list.
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from matingest.core.errors import CreationFailed, PreconditionViolation
from matingest.core.models import (
    Batch,
    BatchDefaults,
    BatchResult,
    CreationRequest,
    FileSource,
    ItemOutcome,
    LinkSource,
    PendingItem,
)
from matingest.ledger.ledger import ItemLedger
from matingest.logging.context import set_item_context
from matingest.upload.aggregator import aggregate
from matingest.upload.progress import NullObserver, ProgressObserver

logger = logging.getLogger(__name__)

CreateFn = Callable[[CreationRequest], Awaitable[str]]


def build_request(item: PendingItem, defaults: BatchDefaults) -> CreationRequest:
    """Combine one ready item with the batch-wide defaults."""
    request = CreationRequest(
        title=item.title.strip(),
        material_type=item.material_type,
        page_count=item.page_count,
        target_course_id=defaults.target_course_id,
        folder_id=defaults.folder_id,
        visibility=defaults.visibility,
        restriction=defaults.restriction,
    )
    if isinstance(item.source, LinkSource):
        request.resource_address = item.source.url
    elif isinstance(item.source, FileSource):
        request.file = item.source.handle
    if item.preview is not None:
        request.preview_url = item.preview.url
        request.preview_blob = item.preview.blob
    return request


def check_ready(batch: Batch, max_items: int | None = None) -> list[str]:
    """Return every reason the batch may not start uploading (empty = ok)."""
    problems: list[str] = []
    if not batch.items:
        problems.append("batch is empty")
    if max_items is not None and len(batch.items) > max_items:
        problems.append(f"batch has {len(batch.items)} items, limit is {max_items}")
    for position, item in enumerate(batch.items, start=1):
        if item.status != "ready":
            problems.append(f"item {position} ({item.id}) is {item.status}, not ready")
        if item.needs_title or item.title_loading:
            problems.append(f"item {position} ({item.id}) title is still loading")
        elif not item.title.strip():
            problems.append(f"item {position} ({item.id}) has an empty title")
    return problems


class UploadExecutor:
    """Submits ledger items one by one and reports progress after each."""

    def __init__(
        self,
        ledger: ItemLedger,
        create: CreateFn,
        max_items: int | None = None,
    ) -> None:
        self._ledger = ledger
        self._create = create
        self._max_items = max_items

    async def run(
        self,
        defaults: BatchDefaults | None = None,
        observer: ProgressObserver | None = None,
    ) -> BatchResult:
        """Submit every item currently in the ledger, in order.

        Raises:
            PreconditionViolation: The batch is not eligible; nothing was sent.
        """
        batch = self._ledger.to_batch(defaults)
        problems = check_ready(batch, self._max_items)
        if problems:
            logger.warning("Upload rejected: %s", "; ".join(problems))
            raise PreconditionViolation(problems)

        observer = observer or NullObserver()
        total = len(batch.items)
        logger.info("Uploading %d item(s)", total)

        start = time.monotonic()
        outcomes: list[ItemOutcome] = []
        for index, item in enumerate(batch.items):
            outcome = await self._submit(index, item, batch.defaults)
            outcomes.append(outcome)
            try:
                observer.on_progress(len(outcomes), total, outcome)
            except Exception:
                logger.warning("Progress observer failed", exc_info=True)
        set_item_context(None)

        result = aggregate(outcomes, time.monotonic() - start)
        logger.info(
            "Upload finished: %d succeeded, %d failed",
            result.total_succeeded, result.total_failed,
        )
        return result

    async def _submit(self, index: int, item: PendingItem, defaults: BatchDefaults) -> ItemOutcome:
        set_item_context(item.id)
        request = build_request(item, defaults)
        self._ledger.mark_uploading(item.id)
        try:
            result_id = await self._create(request)
        except CreationFailed as exc:
            error = str(exc)
        except Exception as exc:
            # Transport and unexpected errors are per-item failures too.
            error = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
        else:
            self._ledger.mark_success(item.id, result_id)
            logger.debug("Created material %s", result_id)
            return ItemOutcome(
                index=index, item_id=item.id, title=request.title,
                success=True, result_id=result_id,
            )

        self._ledger.mark_error(item.id, error)
        logger.warning("Creation failed: %s", error)
        return ItemOutcome(
            index=index, item_id=item.id, title=request.title,
            success=False, error=error,
        )
