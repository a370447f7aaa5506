"""Injected capabilities shared by every core operation."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from civicbroker.asyncio_tasks import BackgroundTasks

if typ.TYPE_CHECKING:
    from .ports import KeyValueStore, PhotoCacheWarmer


@dc.dataclass(frozen=True, slots=True)
class PhotoCache:
    """Image cache proxy configuration.

    Attributes
    ----------
    public_base_url : str
        Base URL under which cached images are served to clients.
    warmer : PhotoCacheWarmer
        Adapter that asks the proxy to fetch a source photo.
    """

    public_base_url: str
    warmer: PhotoCacheWarmer

    def cached_url(self, politician_id: str, source_url: str) -> str:
        """Return the client-facing URL for a politician's cached photo."""
        extension = source_url.rsplit(".", 1)[-1]
        return f"{self.public_base_url.rstrip('/')}/images/{politician_id}.{extension}"


@dc.dataclass(frozen=True, slots=True)
class BrokerContext:
    """Capabilities passed explicitly into core operations.

    Attributes
    ----------
    store : KeyValueStore
        Key-value store holding records, ratings and the index.
    photo_cache : PhotoCache | None
        Image cache, or ``None`` to pass source photo URLs through unchanged.
    background : BackgroundTasks
        Task set for fire-and-forget work.
    """

    store: KeyValueStore
    photo_cache: PhotoCache | None = None
    background: BackgroundTasks = dc.field(default_factory=BackgroundTasks)
