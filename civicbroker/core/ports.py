"""Ports for the civic broker core.

The core owns no connection state. Everything it needs from the outside
world (a key-value store and an image cache) is described here as a protocol
and injected through ``BrokerContext``.

Examples
--------
Implement a store that satisfies the protocol:

>>> class MyStore(KeyValueStore):
...     async def hgetall(self, key: str) -> dict[str, str]:
...         return self._hashes.get(key, {})
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class KeyValueStore(typ.Protocol):
    """Hashes, unordered sets, sorted sets and lists keyed by string.

    Every method may raise ``StoreError`` when the backend is unavailable.
    Missing keys behave as empty containers, never as errors.

    Methods
    -------
    hset(key, mapping)
        Write fields into a hash.
    hget(key, field)
        Read one hash field.
    hgetall(key)
        Read a whole hash.
    delete(key)
        Remove a key of any type.
    sadd(key, *members)
        Add members to a set.
    smembers(key)
        List set members in the backend's iteration order.
    sismember(key, member)
        Test set membership.
    zadd(key, member, score)
        Set a member's score in a sorted set.
    zscore(key, member)
        Read a member's score.
    zrem(key, member)
        Remove a member from a sorted set.
    zcount(key, minimum, maximum)
        Count members whose score lies in an inclusive range.
    keys(pattern)
        List keys matching a glob pattern.
    lpush(key, value)
        Prepend a value to a list.
    ping()
        Check that the backend answers.
    """

    async def hset(self, key: str, mapping: cabc.Mapping[str, str]) -> None:
        """Write ``mapping`` into the hash at ``key``, overwriting fields."""
        ...

    async def hget(self, key: str, field: str) -> str | None:
        """Return one field of the hash at ``key``, or ``None``."""
        ...

    async def hgetall(self, key: str) -> dict[str, str]:
        """Return the hash at ``key``; empty when the key is missing."""
        ...

    async def delete(self, key: str) -> None:
        """Delete ``key`` whatever its type."""
        ...

    async def sadd(self, key: str, *members: str) -> None:
        """Add ``members`` to the set at ``key``."""
        ...

    async def smembers(self, key: str) -> list[str]:
        """Return the members of the set at ``key``."""
        ...

    async def sismember(self, key: str, member: str) -> bool:
        """Return True when ``member`` belongs to the set at ``key``."""
        ...

    async def zadd(self, key: str, member: str, score: float) -> None:
        """Set ``member``'s score in the sorted set at ``key``."""
        ...

    async def zscore(self, key: str, member: str) -> float | None:
        """Return ``member``'s score, or ``None`` when absent."""
        ...

    async def zrem(self, key: str, member: str) -> None:
        """Remove ``member`` from the sorted set at ``key``."""
        ...

    async def zcount(self, key: str, minimum: float, maximum: float) -> int:
        """Count members scoring within ``[minimum, maximum]``."""
        ...

    async def keys(self, pattern: str) -> list[str]:
        """Return keys matching the glob ``pattern``."""
        ...

    async def lpush(self, key: str, value: str) -> None:
        """Prepend ``value`` to the list at ``key``."""
        ...

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        ...


class PhotoCacheWarmer(typ.Protocol):
    """Asks an image cache proxy to fetch a source photo ahead of use."""

    async def warm(self, source_url: str) -> None:
        """Request ``source_url`` through the cache.

        Failures propagate to the caller, which runs this as a background
        task and only logs them.
        """
        ...
