"""Redis-backed key-value store.

Wraps a ``redis.asyncio.Redis`` client created with ``decode_responses=True``
and translates every ``redis.RedisError`` into ``StoreError`` so the core
never sees client-specific exceptions. Retries and connection pooling belong
to the client.
"""

from __future__ import annotations

import contextlib
import typing as typ

import redis
import redis.asyncio as aioredis

from civicbroker.core.errors import StoreError
from civicbroker.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)


@contextlib.contextmanager
def _translate_errors(operation: str) -> cabc.Iterator[None]:
    try:
        yield
    except redis.RedisError as exc:
        msg = f"Redis {operation} failed: {exc}"
        raise StoreError(msg) from exc


class RedisKeyValueStore:
    """``KeyValueStore`` over a Redis server.

    Parameters
    ----------
    client : redis.asyncio.Redis
        Client configured with ``decode_responses=True``.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, host: str, port: int) -> RedisKeyValueStore:
        """Build a store with its own client for ``host`` and ``port``."""
        log_info(logger, "Connecting to Redis at %s:%d.", host, port)
        return cls(aioredis.Redis(host=host, port=port, decode_responses=True))

    async def close(self) -> None:
        """Release the client's connections."""
        await self._client.aclose()

    async def hset(self, key: str, mapping: cabc.Mapping[str, str]) -> None:
        if not mapping:
            return
        with _translate_errors("hset"):
            await self._client.hset(key, mapping=dict(mapping))

    async def hget(self, key: str, field: str) -> str | None:
        with _translate_errors("hget"):
            return await self._client.hget(key, field)

    async def hgetall(self, key: str) -> dict[str, str]:
        with _translate_errors("hgetall"):
            return dict(await self._client.hgetall(key))

    async def delete(self, key: str) -> None:
        with _translate_errors("delete"):
            await self._client.delete(key)

    async def sadd(self, key: str, *members: str) -> None:
        if not members:
            return
        with _translate_errors("sadd"):
            await self._client.sadd(key, *members)

    async def smembers(self, key: str) -> list[str]:
        with _translate_errors("smembers"):
            members = await self._client.smembers(key)
        return sorted(members)

    async def sismember(self, key: str, member: str) -> bool:
        with _translate_errors("sismember"):
            return bool(await self._client.sismember(key, member))

    async def zadd(self, key: str, member: str, score: float) -> None:
        with _translate_errors("zadd"):
            await self._client.zadd(key, {member: score})

    async def zscore(self, key: str, member: str) -> float | None:
        with _translate_errors("zscore"):
            score = await self._client.zscore(key, member)
        return None if score is None else float(score)

    async def zrem(self, key: str, member: str) -> None:
        with _translate_errors("zrem"):
            await self._client.zrem(key, member)

    async def zcount(self, key: str, minimum: float, maximum: float) -> int:
        with _translate_errors("zcount"):
            return int(await self._client.zcount(key, minimum, maximum))

    async def keys(self, pattern: str) -> list[str]:
        with _translate_errors("keys"):
            return [key async for key in self._client.scan_iter(match=pattern)]

    async def lpush(self, key: str, value: str) -> None:
        with _translate_errors("lpush"):
            await self._client.lpush(key, value)

    async def ping(self) -> bool:
        with _translate_errors("ping"):
            return bool(await self._client.ping())
