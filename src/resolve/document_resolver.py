# src/resolve/document_resolver.py — v1
"""Local document resolver using PyMuPDF (fitz).

Renders the first page of a selected file to a JPEG thumbnail and reads
the page count. Requires the 'pymupdf' package.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from matingest.core.blobs import LocalBlob
from matingest.core.models import FileSource, PendingItem, PreviewAsset
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult

logger = logging.getLogger(__name__)

# Extensions PyMuPDF can open as paged documents.
DOCUMENT_EXTENSIONS = [".pdf", ".epub", ".xps", ".oxps", ".cbz", ".fb2"]


def render_first_page(path: Path, scale: float = 0.5, jpeg_quality: int = 70) -> tuple[bytes, int]:
    """Return (jpeg bytes of page 1, page count). Blocking; run off the loop."""
    try:
        import fitz  # PyMuPDF
    except ImportError as e:
        raise ImportError(
            "pymupdf package required for document thumbnails: pip install pymupdf"
        ) from e

    with fitz.open(str(path)) as doc:
        page_count = len(doc)
        if page_count == 0:
            return b"", 0
        pixmap = doc[0].get_pixmap(matrix=fitz.Matrix(scale, scale))
        return pixmap.tobytes("jpeg", jpg_quality=jpeg_quality), page_count


class DocumentResolver(BaseResolver):
    """First-page thumbnail and page count for paged local documents."""

    def __init__(self, scale: float = 0.5, jpeg_quality: int = 70) -> None:
        self._scale = scale
        self._jpeg_quality = jpeg_quality

    @property
    def handles(self) -> list[str]:
        return [f"file:{ext}" for ext in DOCUMENT_EXTENSIONS]

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        if not isinstance(item.source, FileSource):
            return NO_PREVIEW
        handle = item.source.handle
        data, page_count = await asyncio.to_thread(
            render_first_page, handle.path, self._scale, self._jpeg_quality,
        )
        if not data:
            logger.info("Document %s has no pages", handle.filename)
            return NO_PREVIEW

        # Created after the await so a cancelled render leaves nothing behind.
        stem = Path(handle.filename).stem or "document"
        blob = LocalBlob.from_bytes(data, "image/jpeg", f"{stem}-preview.jpg", suffix=".jpg")
        logger.debug("Rendered preview for %s (%d pages)", handle.filename, page_count)
        return PreviewResult(preview=PreviewAsset(blob=blob), page_count=page_count)
