# src/api/facade.py — v1
"""Public API facade — one object per batch of links or files.

Usage:
    from matingest.api.facade import BatchSession

    async with BatchSession("links") as session:
        session.add_links(text)
        await session.wait_until_settled()
        result = await session.upload()

Mutating calls that start resolution must run inside the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Iterable

from matingest.api.models import BatchKind, ItemView, SessionSnapshot
from matingest.clients.gdrive_client import GDriveClient
from matingest.clients.materials_client import MaterialsClient
from matingest.clients.oembed_client import OEmbedClient
from matingest.config.settings import Settings
from matingest.core.models import BatchDefaults, BatchResult, FileHandle, ParseReport, PendingItem
from matingest.ingest.normalizer import normalize_link
from matingest.ingest.parser import BatchParser, file_handle_from_bytes
from matingest.ledger.ledger import ItemLedger
from matingest.logging.context import set_batch_context
from matingest.resolve.coordinator import MetadataResolver
from matingest.resolve.resolver_factory import ResolverRegistry, create_resolvers
from matingest.upload.executor import CreateFn, UploadExecutor
from matingest.upload.progress import ProgressObserver

logger = logging.getLogger(__name__)


class BatchSession:
    """Parse, resolve, edit and upload one batch.

    Args:
        kind: "links" or "files"; a session never mixes the two.
        settings: Global settings. Loaded from .env if None.
        create: Creation call override. Defaults to a MaterialsClient.
        registry: Resolver registry override. Defaults to one built from
            settings with Drive/oEmbed clients owned by the session.
    """

    def __init__(
        self,
        kind: BatchKind,
        settings: Settings | None = None,
        create: CreateFn | None = None,
        registry: ResolverRegistry | None = None,
    ) -> None:
        if kind not in ("links", "files"):
            raise ValueError(f"Unknown batch kind: {kind!r}")
        self.kind = kind
        self.batch_id = uuid.uuid4().hex[:8]
        self._settings = settings or Settings()
        self._owned: list[MaterialsClient | GDriveClient | OEmbedClient] = []

        if registry is None:
            registry = self._default_registry()
        if create is None:
            materials = MaterialsClient(
                self._settings.api_base_url,
                token=self._settings.api_token,
                timeout=self._settings.api_timeout_s,
            )
            self._owned.append(materials)
            create = materials.create

        self._parser = BatchParser(self._settings)
        self._ledger = ItemLedger()
        self._resolver = MetadataResolver(
            self._ledger, registry, timeout_s=self._settings.resolve_timeout_s,
        )
        self._executor = UploadExecutor(self._ledger, create, max_items=self.max_items)

    def _default_registry(self) -> ResolverRegistry:
        gdrive = None
        if self._settings.gdrive_api_keys_list:
            gdrive = GDriveClient(
                self._settings.gdrive_api_keys_list,
                base_url=self._settings.gdrive_api_base_url,
                timeout=self._settings.resolve_timeout_s,
            )
            self._owned.append(gdrive)
        else:
            logger.info("No Drive API keys configured; Drive titles stay heuristic")
        oembed = OEmbedClient(
            self._settings.youtube_oembed_url,
            timeout=self._settings.resolve_timeout_s,
            max_retries=self._settings.lookup_max_retries,
        )
        self._owned.append(oembed)
        return create_resolvers(self._settings, gdrive=gdrive, oembed=oembed)

    # --- Lifecycle ---

    async def __aenter__(self) -> BatchSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel resolution, release every blob, close owned clients."""
        await self._resolver.aclose()
        self._ledger.clear()
        for client in self._owned:
            await client.aclose()
        self._owned.clear()

    # --- Read access ---

    @property
    def ledger(self) -> ItemLedger:
        return self._ledger

    @property
    def max_items(self) -> int:
        return self._parser.max_links if self.kind == "links" else self._parser.max_files

    @property
    def items(self) -> list[PendingItem]:
        return self._ledger.items()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            kind=self.kind,
            items=[ItemView.from_item(i) for i in self._ledger],
            settled=self._ledger.is_settled(),
        )

    def default_batch_defaults(self) -> BatchDefaults:
        return BatchDefaults(
            visibility=self._settings.default_visibility,
            restriction=self._settings.default_restriction,
        )

    # --- Adding items ---

    def add_links(self, text: str) -> ParseReport:
        """Parse delimited link text, append accepted items and start resolving them."""
        self._require_kind("links")
        _require_loop()
        set_batch_context(self.batch_id, phase="parse")
        report = self._parser.parse_links(text, existing_count=len(self._ledger))
        return self._accept(report)

    def add_files(self, files: Iterable[Path | FileHandle]) -> ParseReport:
        """Append local files (paths or prepared handles) and start resolving them."""
        self._require_kind("files")
        _require_loop()
        set_batch_context(self.batch_id, phase="parse")
        report = self._parser.parse_files(files, existing_count=len(self._ledger))
        return self._accept(report)

    def add_file_bytes(self, filename: str, data: bytes) -> ParseReport:
        """Append one in-memory file; the bytes are spilled to an owned temp file."""
        self._require_kind("files")
        _require_loop()
        return self.add_files([file_handle_from_bytes(filename, data)])

    def _accept(self, report: ParseReport) -> ParseReport:
        ids = self._ledger.add(report.items)
        set_batch_context(self.batch_id, phase="resolve")
        self._resolver.schedule(ids)
        return report

    def _require_kind(self, kind: BatchKind) -> None:
        if self.kind != kind:
            raise ValueError(f"Cannot add {kind} to a {self.kind} batch")

    # --- Editing ---

    def update_title(self, item_id: str, title: str) -> PendingItem:
        return self._ledger.update_title(item_id, title)

    def update_url(self, item_id: str, url: str) -> PendingItem:
        """Point a link item at a new URL; any in-flight resolution is dropped."""
        _require_loop()
        replacement = normalize_link(url)
        self._resolver.cancel(item_id)
        item = self._ledger.replace_source(item_id, replacement)
        self._resolver.schedule([item_id])
        return item

    def remove(self, item_id: str) -> PendingItem:
        self._resolver.cancel(item_id)
        return self._ledger.remove(item_id)

    async def clear(self) -> int:
        await self._resolver.aclose()
        return self._ledger.clear()

    # --- Resolution and upload ---

    async def wait_until_settled(self, timeout: float | None = None) -> bool:
        """Wait for every resolution task. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._resolver.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return self._ledger.is_settled()

    async def upload(
        self,
        defaults: BatchDefaults | None = None,
        observer: ProgressObserver | None = None,
    ) -> BatchResult:
        """Submit every item. Terminal items are discarded afterwards.

        Raises:
            PreconditionViolation: The batch is not ready; nothing was sent.
        """
        set_batch_context(self.batch_id, phase="upload")
        result = await self._executor.run(defaults or self.default_batch_defaults(), observer)
        self._ledger.discard_terminal()
        return result


def _require_loop() -> None:
    """Fail before touching the ledger when called outside the event loop."""
    asyncio.get_running_loop()
