# src/resolve/base_resolver.py — v1
"""Abstract resolver interface for per-source metadata."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from matingest.core.models import PendingItem, PreviewAsset


class PreviewResult(BaseModel):
    """Outcome of a preview sub-step. Both fields may legitimately be None."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    preview: PreviewAsset | None = None
    page_count: int | None = None


NO_PREVIEW = PreviewResult()


class BaseResolver(ABC):
    """Unified interface for source-specific preview and title resolution.

    Implementations may raise on failure; the coordinator turns any error
    or timeout into the item's fallback values.
    """

    @property
    @abstractmethod
    def handles(self) -> list[str]:
        """Resolver keys served (detected link types or 'file:<format>')."""

    @abstractmethod
    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        """Produce a preview (and page count for files)."""

    async def resolve_title(self, item: PendingItem) -> str | None:
        """Return an authoritative title, or None to keep the heuristic."""
        return None

    @property
    def uses_network(self) -> bool:
        return False
