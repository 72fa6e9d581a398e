# src/resolve/gdrive_resolver.py — v1
"""Cloud document and cloud folder resolvers (Google Drive).

Single documents get a thumbnail URL built straight from their id.
Folders are listed and the first real file found becomes the preview,
descending into sub-folders only when a level holds no files at all.
"""

from __future__ import annotations

import logging

from matingest.clients.gdrive_client import GDriveClient, GDriveFile
from matingest.core.models import PendingItem, PreviewAsset
from matingest.ingest.normalizer import extract_document_id, extract_folder_id
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult

logger = logging.getLogger(__name__)

THUMBNAIL_URL = "https://drive.google.com/thumbnail?id={file_id}&sz={size}"

# Pages fetched per folder before giving up on finding a file at that level.
MAX_PAGES_PER_FOLDER = 3
# Listing calls allowed for one folder preview, across all depths.
MAX_LISTINGS = 12


def thumbnail_url(file_id: str, size: str = "w400-h300") -> str:
    return THUMBNAIL_URL.format(file_id=file_id, size=size)


class GDriveDocumentResolver(BaseResolver):
    """Preview and display name for a single Drive/Docs file."""

    def __init__(self, gdrive: GDriveClient | None = None, size: str = "w400-h300") -> None:
        self._gdrive = gdrive
        self._size = size

    @property
    def handles(self) -> list[str]:
        return ["cloud-document"]

    @property
    def uses_network(self) -> bool:
        return self._gdrive is not None

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        file_id = extract_document_id(item.locator)
        if file_id is None:
            return NO_PREVIEW
        return PreviewResult(preview=PreviewAsset(url=thumbnail_url(file_id, self._size)))

    async def resolve_title(self, item: PendingItem) -> str | None:
        file_id = extract_document_id(item.locator)
        if file_id is None or self._gdrive is None:
            return None
        meta = await self._gdrive.get_metadata(file_id)
        return meta.name or None


class GDriveFolderResolver(BaseResolver):
    """Preview from the first file inside a folder, title from the folder name."""

    def __init__(
        self,
        gdrive: GDriveClient | None = None,
        max_depth: int = 3,
        size: str = "w400-h300",
    ) -> None:
        self._gdrive = gdrive
        self._max_depth = max_depth
        self._size = size

    @property
    def handles(self) -> list[str]:
        return ["cloud-folder"]

    @property
    def uses_network(self) -> bool:
        return self._gdrive is not None

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        folder_id = extract_folder_id(item.locator)
        if folder_id is None or self._gdrive is None:
            return NO_PREVIEW
        first = await self.find_first_file(folder_id)
        if first is None:
            logger.info("Folder %s has no file within depth %d", folder_id, self._max_depth)
            return NO_PREVIEW
        return PreviewResult(preview=PreviewAsset(url=thumbnail_url(first.id, self._size)))

    async def resolve_title(self, item: PendingItem) -> str | None:
        folder_id = extract_folder_id(item.locator)
        if folder_id is None or self._gdrive is None:
            return None
        meta = await self._gdrive.get_metadata(folder_id)
        return meta.name or None

    async def find_first_file(self, folder_id: str) -> GDriveFile | None:
        """Depth-bounded search for the first non-folder entry.

        Depth 0 is the folder itself; sub-folders are visited in listing
        order and only when the current level contains no file.
        """
        budget = [MAX_LISTINGS]
        return await self._search(folder_id, 0, budget)

    async def _search(
        self, folder_id: str, depth: int, budget: list[int],
    ) -> GDriveFile | None:
        subfolders: list[GDriveFile] = []
        page_token: str | None = None

        for _ in range(MAX_PAGES_PER_FOLDER):
            if budget[0] <= 0:
                return None
            budget[0] -= 1
            contents = await self._gdrive.list_folder(folder_id, page_token)  # type: ignore[union-attr]
            for entry in contents.files:
                if not entry.is_folder:
                    return entry
                subfolders.append(entry)
            page_token = contents.next_page_token
            if not page_token:
                break

        if depth >= self._max_depth:
            return None

        for sub in subfolders:
            found = await self._search(sub.id, depth + 1, budget)
            if found is not None:
                return found
            if budget[0] <= 0:
                break
        return None
