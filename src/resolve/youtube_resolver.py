# src/resolve/youtube_resolver.py — v1
"""Video-embed resolver: thumbnail derived from the video id, title via oEmbed."""

from __future__ import annotations

import logging

from matingest.clients.oembed_client import OEmbedClient
from matingest.core.models import PendingItem, PreviewAsset
from matingest.ingest.normalizer import extract_video_id
from matingest.resolve.base_resolver import NO_PREVIEW, BaseResolver, PreviewResult

logger = logging.getLogger(__name__)

THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/{quality}.jpg"


def thumbnail_url(video_id: str, quality: str = "maxresdefault") -> str:
    return THUMBNAIL_URL.format(video_id=video_id, quality=quality)


class YouTubeResolver(BaseResolver):
    """No network call is needed for the preview, only for the title."""

    def __init__(
        self,
        oembed: OEmbedClient | None = None,
        quality: str = "maxresdefault",
    ) -> None:
        self._oembed = oembed
        self._quality = quality

    @property
    def handles(self) -> list[str]:
        return ["video-embed"]

    @property
    def uses_network(self) -> bool:
        return self._oembed is not None

    async def resolve_preview(self, item: PendingItem) -> PreviewResult:
        video_id = extract_video_id(item.locator)
        if video_id is None:
            logger.debug("No video id in %s", item.locator)
            return NO_PREVIEW
        return PreviewResult(preview=PreviewAsset(url=thumbnail_url(video_id, self._quality)))

    async def resolve_title(self, item: PendingItem) -> str | None:
        if self._oembed is None:
            return None
        return await self._oembed.fetch_title(item.locator)
