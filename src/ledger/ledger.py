# src/ledger/ledger.py — v1
"""Item ledger — in-memory store of per-item state, keyed by identity.

Every change is a reducer-style replacement of one entry
(``item.model_copy(update=...)``); no operation touches a sibling entry.
Resolution results carry the generation they were started with and are
dropped when the item has since been edited or removed.

The ledger is the single owner of locally-owned blobs once an item is
added: it releases them when the item reaches a terminal state, is
removed, has its preview replaced, or the whole batch is cleared.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator

from matingest.core.errors import InvalidTransitionError, UnknownItemError
from matingest.core.models import (
    Batch,
    BatchDefaults,
    ItemStatus,
    LinkSource,
    PendingItem,
    PreviewAsset,
)
from matingest.ledger.states import can_transition, is_editable

logger = logging.getLogger(__name__)

ChangeListener = Callable[[PendingItem], None]


class ItemLedger:
    """Ordered, identity-addressed store of PendingItems."""

    def __init__(self, items: Iterable[PendingItem] = ()) -> None:
        self._items: dict[str, PendingItem] = {}
        self._listeners: list[ChangeListener] = []
        self.add(items)

    # --- Read access ---

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[PendingItem]:
        return iter(list(self._items.values()))

    def get(self, item_id: str) -> PendingItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise UnknownItemError(item_id) from None

    def ids(self) -> list[str]:
        return list(self._items)

    def items(self) -> list[PendingItem]:
        return list(self._items.values())

    def by_status(self, *statuses: ItemStatus) -> list[PendingItem]:
        return [i for i in self._items.values() if i.status in statuses]

    def is_settled(self) -> bool:
        """True when no item is waiting on metadata resolution."""
        return all(i.status not in ("pending", "resolving") for i in self._items.values())

    def to_batch(self, defaults: BatchDefaults | None = None) -> Batch:
        return Batch(items=self.items(), defaults=defaults or BatchDefaults())

    # --- Observers ---

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _notify(self, item: PendingItem) -> None:
        for listener in self._listeners:
            try:
                listener(item)
            except Exception:
                logger.warning("Ledger listener failed for %s", item.id, exc_info=True)

    # --- Internal reducer ---

    def _replace(self, item_id: str, **changes: Any) -> PendingItem:
        updated = self.get(item_id).model_copy(update=changes)
        self._items[item_id] = updated
        self._notify(updated)
        return updated

    def _transition(
        self, item_id: str, target: ItemStatus, **changes: Any,
    ) -> PendingItem:
        current = self.get(item_id)
        if not can_transition(current.status, target):
            raise InvalidTransitionError(item_id, current.status, target)
        return self._replace(item_id, status=target, **changes)

    def _is_current(self, item_id: str, generation: int) -> bool:
        item = self._items.get(item_id)
        return item is not None and item.generation == generation and item.status == "resolving"

    def _settle(self, item_id: str) -> PendingItem:
        item = self.get(item_id)
        if item.status == "resolving" and not item.title_loading and not item.preview_loading:
            return self._transition(item_id, "ready")
        return item

    # --- Mutations ---

    def add(self, items: Iterable[PendingItem]) -> list[str]:
        """Append items in order. Identities must be new to this ledger."""
        added: list[str] = []
        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate item id: {item.id!r}")
            self._items[item.id] = item
            added.append(item.id)
        return added

    def begin_resolution(self, item_id: str) -> int:
        """pending -> resolving. Returns the generation the resolver must echo."""
        item = self.get(item_id)
        self._transition(
            item_id, "resolving",
            title_loading=item.needs_title,
            preview_loading=True,
        )
        return item.generation

    def mark_ready(self, item_id: str) -> PendingItem:
        """pending -> ready for items that need no resolution."""
        return self._transition(
            item_id, "ready", title_loading=False, preview_loading=False,
        )

    def apply_title(self, item_id: str, generation: int, title: str | None) -> bool:
        """Record the outcome of a title lookup (None = fall back to the heuristic).

        A user edit made while the lookup was in flight wins. Returns False
        if the result was stale and discarded.
        """
        if not self._is_current(item_id, generation):
            logger.debug("Dropping stale title for %s (generation %d)", item_id, generation)
            return False
        item = self.get(item_id)
        changes: dict[str, Any] = {"title_loading": False}
        if item.needs_title:
            looked_up = (title or "").strip()
            changes["title"] = looked_up or item.fallback_title
            changes["title_origin"] = "lookup" if looked_up else "heuristic"
        self._replace(item_id, **changes)
        self._settle(item_id)
        return True

    def apply_preview(
        self,
        item_id: str,
        generation: int,
        preview: PreviewAsset | None,
        page_count: int | None = None,
    ) -> bool:
        """Record the outcome of a preview resolution (None = no preview).

        A stale result is dropped and any blob it carries is released.
        """
        if not self._is_current(item_id, generation):
            logger.debug("Dropping stale preview for %s (generation %d)", item_id, generation)
            if preview is not None and preview.blob is not None:
                preview.blob.release()
            return False
        item = self.get(item_id)
        if item.preview is not None and item.preview.blob is not None:
            item.preview.blob.release()
        changes: dict[str, Any] = {"preview": preview, "preview_loading": False}
        if page_count is not None and page_count > 0 and item.is_file:
            changes["page_count"] = page_count
        self._replace(item_id, **changes)
        self._settle(item_id)
        return True

    def settle_failed(self, item_id: str, generation: int) -> bool:
        """Force a resolving item to ready with fallback values."""
        if not self._is_current(item_id, generation):
            return False
        item = self.get(item_id)
        changes: dict[str, Any] = {"title_loading": False, "preview_loading": False}
        if item.needs_title:
            changes["title"] = item.fallback_title
        self._replace(item_id, **changes)
        self._settle(item_id)
        return True

    def update_title(self, item_id: str, title: str) -> PendingItem:
        """User edit of the display title. Pre-upload states only."""
        item = self.get(item_id)
        if not is_editable(item.status):
            raise InvalidTransitionError(item_id, item.status, "edit title")
        self._replace(item_id, title=title, title_origin="user", title_loading=False)
        return self._settle(item_id)

    def replace_source(self, item_id: str, replacement: PendingItem) -> PendingItem:
        """User edit of a link locator.

        The item keeps its identity, drops its preview, bumps its generation
        and goes back to pending so it can be resolved again. A title the
        user already set survives the edit.
        """
        item = self.get(item_id)
        if not is_editable(item.status):
            raise InvalidTransitionError(item_id, item.status, "edit locator")
        if not isinstance(item.source, LinkSource):
            raise InvalidTransitionError(item_id, item.status, "edit locator of a file")
        self._release_blobs(item, preview_only=True)

        keep_title = item.title_origin in ("input", "user")
        return self._transition(
            item_id, "pending",
            source=replacement.source,
            material_type=replacement.material_type,
            title=item.title if keep_title else replacement.title,
            title_origin=item.title_origin if keep_title else replacement.title_origin,
            fallback_title=item.title if keep_title else replacement.fallback_title,
            preview=None,
            page_count=None,
            title_loading=False,
            preview_loading=False,
            generation=item.generation + 1,
        )

    def remove(self, item_id: str) -> PendingItem:
        """Drop a pre-upload item and release everything it owns."""
        item = self.get(item_id)
        if not is_editable(item.status):
            raise InvalidTransitionError(item_id, item.status, "remove")
        del self._items[item_id]
        self._release_blobs(item)
        logger.debug("Removed item %s", item_id)
        return item

    def clear(self) -> int:
        """Drop every item and release all blobs. Returns the number removed."""
        items = list(self._items.values())
        self._items.clear()
        for item in items:
            self._release_blobs(item)
        return len(items)

    def mark_uploading(self, item_id: str) -> PendingItem:
        return self._transition(item_id, "uploading")

    def mark_success(self, item_id: str, result_id: str | None) -> PendingItem:
        item = self._transition(item_id, "success", result_id=result_id, error=None)
        self._release_blobs(item)
        return item

    def mark_error(self, item_id: str, error: str) -> PendingItem:
        item = self._transition(item_id, "error", error=error, result_id=None)
        self._release_blobs(item)
        return item

    def discard_terminal(self) -> list[PendingItem]:
        """Remove items that reached success or error."""
        done = [i for i in self._items.values() if i.is_terminal]
        for item in done:
            del self._items[item.id]
            self._release_blobs(item)
        return done

    # --- Blob ownership ---

    @staticmethod
    def _release_blobs(item: PendingItem, preview_only: bool = False) -> None:
        if preview_only:
            if item.preview is not None and item.preview.blob is not None:
                item.preview.blob.release()
            return
        for blob in item.owned_blobs():
            blob.release()
