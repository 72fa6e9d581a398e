# src/resolve/generic_resolver.py — v1
"""Fallback resolver: no preview, heuristic title is final."""

from __future__ import annotations

from matingest.core.models import PendingItem
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult

# Registry key for files no specific resolver claims.
ANY_FILE = "file:*"


class GenericResolver(BaseResolver):
    """Generic links, generic documents and unsupported file formats."""

    @property
    def handles(self) -> list[str]:
        return ["generic-link", "generic-document", ANY_FILE]

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        return NO_PREVIEW
