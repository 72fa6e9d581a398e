# src/resolve/office_resolver.py — v1
"""Office document resolver: page estimate from file size, no preview.

Word and PowerPoint files are not rendered; their page count is a
size-based estimate (one page per 25 KB for documents, one slide per
75 KB for presentations, never below 1).
"""

from __future__ import annotations

import logging
from pathlib import PurePath

from matingest.core.models import FileSource, PendingItem
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult

logger = logging.getLogger(__name__)

# Kilobytes per estimated page.
KB_PER_PAGE: dict[str, int] = {
    ".docx": 25,
    ".doc": 25,
    ".pptx": 75,
    ".ppt": 75,
}


def estimate_pages(size_bytes: int, kb_per_page: int) -> int:
    """Size-based page estimate, rounded half up, minimum 1."""
    return max(1, int(size_bytes / 1024 / kb_per_page + 0.5))


class OfficeResolver(BaseResolver):
    """Estimated page count for Word and PowerPoint files."""

    @property
    def handles(self) -> list[str]:
        return [f"file:{ext}" for ext in KB_PER_PAGE]

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        if not isinstance(item.source, FileSource):
            return NO_PREVIEW
        handle = item.source.handle
        kb_per_page = KB_PER_PAGE.get(PurePath(handle.filename).suffix.lower())
        if kb_per_page is None:
            return NO_PREVIEW
        pages = estimate_pages(handle.size_bytes, kb_per_page)
        logger.debug("Estimated %d page(s) for %s", pages, handle.filename)
        return PreviewResult(page_count=pages)
