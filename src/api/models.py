# src/api/models.py — v1
"""API-level models: BatchKind, ItemView, SessionSnapshot."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from matingest.core.models import PendingItem

BatchKind = Literal["links", "files"]


class ItemView(BaseModel):
    """Flat, serializable view of one pending item for display."""

    id: str
    kind: Literal["file", "link"]
    locator: str
    title: str
    material_type: str
    detected_type: str | None = None
    status: str
    preview_url: str | None = None
    has_local_preview: bool = False
    page_count: int | None = None
    error: str | None = None
    result_id: str | None = None

    @classmethod
    def from_item(cls, item: PendingItem) -> ItemView:
        return cls(
            id=item.id,
            kind=item.source.kind,
            locator=item.locator,
            title=item.title,
            material_type=item.material_type,
            detected_type=item.detected_type,
            status=item.status,
            preview_url=item.preview.url if item.preview else None,
            has_local_preview=bool(item.preview and item.preview.is_local),
            page_count=item.page_count,
            error=item.error,
            result_id=item.result_id,
        )


class SessionSnapshot(BaseModel):
    """Current state of a batch session."""

    kind: BatchKind
    items: list[ItemView] = Field(default_factory=list)
    settled: bool = True

    @property
    def count(self) -> int:
        return len(self.items)
