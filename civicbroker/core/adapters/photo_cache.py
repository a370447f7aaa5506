"""HTTP adapter that warms the image cache proxy.

The proxy fetches and stores a source photo the first time it is asked for
it. Requesting ``{cache_url}/{cache_options}/{source_url}`` ahead of time means
clients following the rewritten photo URL hit a warm cache.
"""

from __future__ import annotations

import typing as typ

from civicbroker.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import httpx

logger = get_logger(__name__)


class HttpPhotoCacheWarmer:
    """Warm the image cache proxy with a plain GET request.

    Parameters
    ----------
    client : httpx.AsyncClient
        Shared HTTP client; its lifecycle belongs to the caller.
    cache_url : str
        Base URL of the image cache proxy.
    cache_options : str
        Resize/format options segment understood by the proxy.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache_url: str,
        cache_options: str,
    ) -> None:
        self._client = client
        self._cache_url = cache_url.rstrip("/")
        self._cache_options = cache_options.strip("/")

    def warm_url(self, source_url: str) -> str:
        """Return the proxy URL that fetches ``source_url``."""
        return f"{self._cache_url}/{self._cache_options}/{source_url}"

    async def warm(self, source_url: str) -> None:
        """Request ``source_url`` through the proxy.

        Raises
        ------
        httpx.HTTPError
            If the proxy cannot be reached or answers with an error status.
        """
        url = self.warm_url(source_url)
        response = await self._client.get(url)
        response.raise_for_status()
        log_debug(logger, "Warmed image cache for %s.", source_url)
