# src/clients/gdrive_client.py — v1
"""Google Drive v3 client for folder listings and file metadata.

Requests are authenticated with API keys. When a key is rate limited
(429/403) or the request fails at the transport level, the client rotates
to the next key and tries again; once every key has been tried the call
raises LookupFailed. Callers treat Drive as unreliable and degrade.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from matingest.core.errors import LookupFailed

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id,name,mimeType,thumbnailLink,webViewLink,size"
LIST_FIELDS = f"files({FILE_FIELDS}),nextPageToken"
DEFAULT_BASE_URL = "https://www.googleapis.com/drive/v3"
DEFAULT_PAGE_SIZE = 100


class GDriveFile(BaseModel):
    """One Drive entry as returned by the files endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    mime_type: str = Field(default="", alias="mimeType")
    thumbnail_link: str | None = Field(default=None, alias="thumbnailLink")
    web_view_link: str | None = Field(default=None, alias="webViewLink")

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE


class GDriveFolderContents(BaseModel):
    files: list[GDriveFile] = Field(default_factory=list)
    next_page_token: str | None = None


class KeyRotation:
    """Round-robin over configured API keys, shared by concurrent lookups."""

    def __init__(self, api_keys: list[str]) -> None:
        self._keys = [k for k in api_keys if k]
        self._index = 0

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def current(self) -> str | None:
        if not self._keys:
            return None
        return self._keys[self._index % len(self._keys)]

    @property
    def index(self) -> int:
        return self._index % len(self._keys) if self._keys else 0

    def rotate(self) -> str | None:
        if self._keys:
            self._index = (self._index + 1) % len(self._keys)
        return self.current


class GDriveClient:
    """Async Drive v3 lookups with API-key rotation."""

    def __init__(
        self,
        api_keys: list[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 8.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._rotation = KeyRotation(api_keys)
        self._base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    @property
    def rotation(self) -> KeyRotation:
        return self._rotation

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> GDriveClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def list_folder(
        self, folder_id: str, page_token: str | None = None,
    ) -> GDriveFolderContents:
        """List the immediate, non-trashed children of a folder."""
        params: dict[str, Any] = {
            "q": f"'{folder_id}' in parents and trashed=false",
            "fields": LIST_FIELDS,
            "orderBy": "folder,name",
            "pageSize": DEFAULT_PAGE_SIZE,
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self._get("/files", params)
        return GDriveFolderContents(
            files=[GDriveFile.model_validate(f) for f in data.get("files", [])],
            next_page_token=data.get("nextPageToken"),
        )

    async def get_metadata(self, file_id: str) -> GDriveFile:
        """Fetch name, MIME type and thumbnail link of one file or folder."""
        data = await self._get(f"/files/{file_id}", {"fields": FILE_FIELDS})
        return GDriveFile.model_validate(data)

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not len(self._rotation):
            raise LookupFailed("gdrive", "no API keys configured")

        url = f"{self._base_url}{path}"
        last_error = "all API keys exhausted"

        for _ in range(len(self._rotation)):
            key = self._rotation.current
            try:
                response = await self._http.get(url, params={**params, "key": key})
            except httpx.TimeoutException:
                # A slow Drive is slow for every key; rotating will not help.
                raise LookupFailed("gdrive", f"timeout on {path}") from None
            except httpx.TransportError as exc:
                logger.warning(
                    "Drive key %d failed (%s), rotating", self._rotation.index, exc,
                )
                last_error = str(exc)
                self._rotation.rotate()
                continue

            if response.status_code in (403, 429):
                logger.warning(
                    "Drive key %d rate limited (HTTP %d), rotating",
                    self._rotation.index, response.status_code,
                )
                last_error = f"rate limited: HTTP {response.status_code}"
                self._rotation.rotate()
                continue

            if response.status_code == 404:
                raise LookupFailed("gdrive", f"not found: {path}")

            if response.is_error:
                last_error = f"HTTP {response.status_code}"
                self._rotation.rotate()
                continue

            return response.json()

        raise LookupFailed("gdrive", last_error)
