"""Key-value store adapters for the civic broker core.

Examples
--------
>>> store = RedisKeyValueStore.from_settings("localhost", 6379)
>>> ctx = BrokerContext(store=store)
"""

from .memory import InMemoryKeyValueStore
from .redis_store import RedisKeyValueStore

__all__ = ("InMemoryKeyValueStore", "RedisKeyValueStore")
