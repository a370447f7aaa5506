"""Per-operation request audit log.

Each API call appends a JSON entry to the ``wslog:<operation>`` list. Audit
writes never affect the response: a failing write is logged and dropped.
"""

from __future__ import annotations

import json
import time
import typing as typ

from civicbroker.core import keys
from civicbroker.core.errors import StoreError
from civicbroker.logging import get_logger, log_debug, log_warning

if typ.TYPE_CHECKING:
    from civicbroker.core.ports import KeyValueStore

logger = get_logger(__name__)


class RequestAudit:
    """Writes audit entries for API operations.

    Parameters
    ----------
    store : KeyValueStore
        Store holding the audit lists.
    debug : bool
        Also log each entry at debug level.
    """

    def __init__(self, store: KeyValueStore, *, debug: bool = False) -> None:
        self._store = store
        self._debug = debug

    async def record(
        self,
        operation: str,
        caller_id: str | None,
        client_ip: str | None,
        details: dict[str, object],
    ) -> None:
        """Append an entry for ``operation``."""
        entry = {
            **details,
            "user_id": caller_id,
            "client_ip": client_ip,
            "time": int(time.time() * 1000),
        }
        text = json.dumps(entry, default=str, sort_keys=True)
        if self._debug:
            log_debug(logger, "%s: %s", operation, text)
        try:
            await self._store.lpush(keys.request_log(operation), text)
        except StoreError as exc:
            log_warning(logger, "Could not write audit entry for %s: %s", operation, exc)
