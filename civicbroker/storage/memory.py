"""In-process key-value store.

Mirrors the subset of Redis semantics the core relies on: missing keys read
as empty containers, containers disappear once their last member is removed
and ``keys`` matches glob patterns. Sets remember insertion order, which keeps
search results stable in tests.

Examples
--------
>>> store = InMemoryKeyValueStore()
>>> await store.sadd("zindex:senate", "p1")
>>> await store.keys("zindex:*sen*")
['zindex:senate']
"""

from __future__ import annotations

import fnmatch
import typing as typ

from civicbroker.core.errors import StoreError

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class InMemoryKeyValueStore:
    """Dictionary-backed ``KeyValueStore``.

    Attributes
    ----------
    operations : list[str]
        Names of the store methods called, in order.
    failure : StoreError | None
        When set, every operation raises this error instead of running,
        simulating an unavailable backend.
    """

    def __init__(self) -> None:
        self._hashes: dict[str, dict[str, str]] = {}
        self._sets: dict[str, dict[str, None]] = {}
        self._sorted_sets: dict[str, dict[str, float]] = {}
        self._lists: dict[str, list[str]] = {}
        self.operations: list[str] = []
        self.failure: StoreError | None = None

    def _record(self, operation: str) -> None:
        self.operations.append(operation)
        if self.failure is not None:
            raise self.failure

    def _containers(self) -> tuple[dict[str, typ.Any], ...]:
        return (self._hashes, self._sets, self._sorted_sets, self._lists)

    async def hset(self, key: str, mapping: cabc.Mapping[str, str]) -> None:
        self._record("hset")
        if mapping:
            self._hashes.setdefault(key, {}).update(mapping)

    async def hget(self, key: str, field: str) -> str | None:
        self._record("hget")
        return self._hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict[str, str]:
        self._record("hgetall")
        return dict(self._hashes.get(key, {}))

    async def delete(self, key: str) -> None:
        self._record("delete")
        for container in self._containers():
            container.pop(key, None)

    async def sadd(self, key: str, *members: str) -> None:
        self._record("sadd")
        if members:
            self._sets.setdefault(key, {}).update(dict.fromkeys(members))

    async def smembers(self, key: str) -> list[str]:
        self._record("smembers")
        return list(self._sets.get(key, {}))

    async def sismember(self, key: str, member: str) -> bool:
        self._record("sismember")
        return member in self._sets.get(key, {})

    async def zadd(self, key: str, member: str, score: float) -> None:
        self._record("zadd")
        self._sorted_sets.setdefault(key, {})[member] = float(score)

    async def zscore(self, key: str, member: str) -> float | None:
        self._record("zscore")
        return self._sorted_sets.get(key, {}).get(member)

    async def zrem(self, key: str, member: str) -> None:
        self._record("zrem")
        members = self._sorted_sets.get(key)
        if members is None:
            return
        members.pop(member, None)
        if not members:
            del self._sorted_sets[key]

    async def zcount(self, key: str, minimum: float, maximum: float) -> int:
        self._record("zcount")
        scores = self._sorted_sets.get(key, {}).values()
        return sum(1 for score in scores if minimum <= score <= maximum)

    async def keys(self, pattern: str) -> list[str]:
        self._record("keys")
        return [
            key
            for container in self._containers()
            for key in container
            if fnmatch.fnmatchcase(key, pattern)
        ]

    async def lpush(self, key: str, value: str) -> None:
        self._record("lpush")
        self._lists.setdefault(key, []).insert(0, value)

    async def ping(self) -> bool:
        self._record("ping")
        return True

    def lrange(self, key: str) -> list[str]:
        """Return a copy of the list at ``key`` (synchronous, for inspection)."""
        return list(self._lists.get(key, []))
