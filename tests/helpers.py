# tests/helpers.py — v1
"""Test helpers shared across unit and integration tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

import httpx

from matingest.core.models import PendingItem, PreviewAsset
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult


def make_pdf(path: Path, pages: int = 1) -> Path:
    """Write a small PDF with `pages` text pages using PyMuPDF."""
    import fitz

    doc = fitz.open()
    for n in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page {n + 1}")
    doc.save(str(path))
    doc.close()
    return path


def mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
    base_url: str = "",
) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(handler))


class StubResolver(BaseResolver):
    """Configurable resolver for coordinator and session tests.

    `gate` (when set) blocks both sub-steps until the event is set.
    """

    def __init__(
        self,
        keys: list[str],
        title: str | None = None,
        preview_url: str | None = None,
        title_error: Exception | None = None,
        preview_error: Exception | None = None,
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
    ) -> None:
        self._keys = keys
        self._title = title
        self._preview_url = preview_url
        self._title_error = title_error
        self._preview_error = preview_error
        self._delay = delay
        self._gate = gate
        self.title_calls: list[str] = []
        self.preview_calls: list[str] = []

    @property
    def handles(self) -> list[str]:
        return self._keys

    async def _wait(self) -> None:
        if self._gate is not None:
            await self._gate.wait()
        if self._delay:
            await asyncio.sleep(self._delay)

    async def resolve_title(self, item: PendingItem) -> str | None:
        self.title_calls.append(item.locator)
        await self._wait()
        if self._title_error is not None:
            raise self._title_error
        return self._title

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        self.preview_calls.append(item.locator)
        await self._wait()
        if self._preview_error is not None:
            raise self._preview_error
        if self._preview_url is None:
            return NO_PREVIEW
        return PreviewResult(preview=PreviewAsset(url=self._preview_url))
