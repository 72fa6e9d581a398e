# src/clients/oembed_client.py — v1
"""oEmbed lookup for authoritative video titles."""

from __future__ import annotations

import logging

import httpx

from matingest.clients.retry import with_retry
from matingest.core.errors import LookupFailed

logger = logging.getLogger(__name__)

DEFAULT_OEMBED_URL = "https://www.youtube.com/oembed"


class OEmbedClient:
    """Fetch a video's title from an oEmbed provider."""

    def __init__(
        self,
        endpoint: str = DEFAULT_OEMBED_URL,
        timeout: float = 8.0,
        max_retries: int = 1,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._max_retries = max_retries
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def fetch_title(self, video_url: str) -> str:
        """Return the provider's title for `video_url`.

        Raises:
            LookupFailed: On HTTP errors, malformed payloads or an empty title.
        """
        data = await with_retry(
            self._fetch, video_url, source="oembed", max_retries=self._max_retries,
        )
        title = str(data.get("title") or "").strip()
        if not title:
            raise LookupFailed("oembed", "response carried no title")
        return title

    async def _fetch(self, video_url: str) -> dict:
        response = await self._http.get(
            self._endpoint, params={"url": video_url, "format": "json"},
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as exc:
            raise LookupFailed("oembed", "response was not JSON") from exc
        if not isinstance(data, dict):
            raise LookupFailed("oembed", "unexpected payload")
        return data
