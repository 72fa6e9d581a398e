# src/resolve/resolver_factory.py — v1
"""Factory: pick the resolver for an item from its detected type or file format.

Link items are keyed by their detected type ("video-embed", ...); file
items by "file:<extension>", falling back to "file:*".
"""

from __future__ import annotations

from pathlib import PurePath

from matingest.clients.gdrive_client import GDriveClient
from matingest.clients.oembed_client import OEmbedClient
from matingest.config.settings import Settings
from matingest.core.models import PendingItem
from matingest.resolve.base_resolver import BaseResolver
from matingest.resolve.document_resolver import DocumentResolver
from matingest.resolve.gdrive_resolver import GDriveDocumentResolver, GDriveFolderResolver
from matingest.resolve.generic_resolver import ANY_FILE, GenericResolver
from matingest.resolve.office_resolver import OfficeResolver
from matingest.resolve.youtube_resolver import YouTubeResolver


def resolver_key(item: PendingItem) -> str:
    """Registry key under which the item's resolver is looked up."""
    if item.detected_type is not None:
        return item.detected_type
    suffix = PurePath(item.locator).suffix.lower()
    return f"file:{suffix}" if suffix else ANY_FILE


class ResolverRegistry:
    """Maps registry keys to resolver instances."""

    def __init__(self, resolvers: list[BaseResolver] | None = None) -> None:
        self._registry: dict[str, BaseResolver] = {}
        self._fallback = GenericResolver()
        for resolver in [self._fallback, *(resolvers or [])]:
            self.register(resolver)

    def register(self, resolver: BaseResolver) -> None:
        """Register a resolver for every key it handles; later ones win."""
        for key in resolver.handles:
            self._registry[key.lower()] = resolver

    def for_item(self, item: PendingItem) -> BaseResolver:
        key = resolver_key(item)
        if key in self._registry:
            return self._registry[key]
        if key.startswith("file:"):
            return self._registry.get(ANY_FILE, self._fallback)
        return self._fallback

    def keys(self) -> list[str]:
        return sorted(self._registry)


def create_resolvers(
    settings: Settings,
    gdrive: GDriveClient | None = None,
    oembed: OEmbedClient | None = None,
) -> ResolverRegistry:
    """Build the default registry from settings and (optional) lookup clients.

    Without clients the resolvers still derive previews locally but never
    replace the heuristic title.
    """
    return ResolverRegistry([
        YouTubeResolver(oembed=oembed, quality=settings.youtube_thumbnail_quality),
        GDriveDocumentResolver(gdrive=gdrive, size=settings.gdrive_thumbnail_size),
        GDriveFolderResolver(
            gdrive=gdrive,
            max_depth=settings.folder_preview_max_depth,
            size=settings.gdrive_thumbnail_size,
        ),
        DocumentResolver(
            scale=settings.thumbnail_scale,
            jpeg_quality=settings.thumbnail_jpeg_quality,
        ),
        OfficeResolver(),
    ])
