"""Process wiring for the civic broker service.

Builds the store, image cache warmer and Falcon app from environment
settings. Serve with an ASGI server in factory mode, for example::

    uvicorn --factory civicbroker.runtime:create_app_from_environment
"""

from __future__ import annotations

import typing as typ

import httpx

from civicbroker.api import create_app
from civicbroker.config import Settings, load_settings
from civicbroker.core.adapters import HttpPhotoCacheWarmer
from civicbroker.core.context import BrokerContext, PhotoCache
from civicbroker.logging import configure_logging, get_logger, log_info, log_warning
from civicbroker.storage import RedisKeyValueStore

if typ.TYPE_CHECKING:
    from falcon import asgi

logger = get_logger(__name__)

_WARM_TIMEOUT_SECONDS = 10.0


class ResourceLifespan:
    """Falcon middleware closing shared clients when the server stops."""

    def __init__(
        self,
        ctx: BrokerContext,
        store: RedisKeyValueStore,
        http_client: httpx.AsyncClient | None,
    ) -> None:
        self._ctx = ctx
        self._store = store
        self._http_client = http_client

    async def process_startup(
        self, scope: dict[str, typ.Any], event: dict[str, typ.Any]
    ) -> None:
        del scope, event
        log_info(logger, "Civic broker starting.")

    async def process_shutdown(
        self, scope: dict[str, typ.Any], event: dict[str, typ.Any]
    ) -> None:
        del scope, event
        await self._ctx.background.drain()
        if self._http_client is not None:
            await self._http_client.aclose()
        await self._store.close()
        log_info(logger, "Civic broker stopped.")


def build_context(
    settings: Settings,
) -> tuple[BrokerContext, RedisKeyValueStore, httpx.AsyncClient | None]:
    """Create the broker context and the clients it owns."""
    store = RedisKeyValueStore.from_settings(settings.redis_host, settings.redis_port)
    photo_cache = None
    http_client = None
    if settings.photo_cache_enabled:
        http_client = httpx.AsyncClient(timeout=_WARM_TIMEOUT_SECONDS)
        warmer = HttpPhotoCacheWarmer(
            http_client,
            typ.cast("str", settings.img_cache_url),
            typ.cast("str", settings.img_cache_opt),
        )
        photo_cache = PhotoCache(public_base_url=settings.public_base_url, warmer=warmer)
    return BrokerContext(store=store, photo_cache=photo_cache), store, http_client


def create_app_from_environment() -> asgi.App:
    """Build the ASGI application from ``CIVICBROKER_*`` variables."""
    settings = load_settings()
    requested_level = settings.log_level or ("DEBUG" if settings.debug else None)
    level, used_default = configure_logging(requested_level)
    if used_default and requested_level is not None:
        log_warning(logger, "Unknown log level %r; using %s.", requested_level, level)

    ctx, store, http_client = build_context(settings)
    app = create_app(ctx, debug=settings.debug)
    app.add_middleware(ResourceLifespan(ctx, store, http_client))
    return app
