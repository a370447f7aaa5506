"""Pytest fixtures for civic broker tests.

Core tests run against the in-memory store adapter; API tests drive the
Falcon app through ``falcon.testing.TestClient``.

Examples
--------
Run the core tests only:

>>> pytest -k "not api"
"""

from __future__ import annotations

import asyncio
import typing as typ

import pytest

from civicbroker.core.context import BrokerContext, PhotoCache
from civicbroker.storage import InMemoryKeyValueStore

if typ.TYPE_CHECKING:
    from falcon import testing

PUBLIC_BASE_URL = "https://broker.example.org"


class RecordingWarmer:
    """Photo cache warmer double that records requested source URLs."""

    def __init__(self, error: Exception | None = None) -> None:
        self.requested: list[str] = []
        self.error = error

    async def warm(self, source_url: str) -> None:
        """Record ``source_url`` and raise the configured error, if any."""
        self.requested.append(source_url)
        if self.error is not None:
            raise self.error


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    """Provide an empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def broker_context(store: InMemoryKeyValueStore) -> BrokerContext:
    """Provide a context without an image cache."""
    return BrokerContext(store=store)


@pytest.fixture
def recording_warmer() -> RecordingWarmer:
    """Provide a warmer that records cache requests."""
    return RecordingWarmer()


@pytest.fixture
def cached_context(
    store: InMemoryKeyValueStore,
    recording_warmer: RecordingWarmer,
) -> BrokerContext:
    """Provide a context whose photos go through the image cache."""
    return BrokerContext(
        store=store,
        photo_cache=PhotoCache(public_base_url=PUBLIC_BASE_URL, warmer=recording_warmer),
    )


@pytest.fixture
def _function_scoped_runner() -> typ.Iterator[asyncio.Runner]:
    """Provide a function-scoped asyncio.Runner for sync BDD steps."""
    with asyncio.Runner() as runner:
        yield runner


@pytest.fixture
def api_client(broker_context: BrokerContext) -> testing.TestClient:
    """Build a Falcon test client over the in-memory store."""
    from falcon import testing

    from civicbroker.api import create_app

    return testing.TestClient(create_app(broker_context))
