"""Utilities for metadata-aware and fire-and-forget asyncio tasks.

``create_task`` attaches consistent metadata for custom event-loop task
factories while behaving like ``loop.create_task`` when no factory is
installed. ``BackgroundTasks`` runs one-way work (photo cache warming) whose
outcome never reaches the request that triggered it.
"""

from __future__ import annotations

import asyncio
import typing as typ

from civicbroker.logging import get_logger, log_debug, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

TASK_METADATA_KWARG = "civicbroker_task_metadata"
_TASK_METADATA_KEYS = frozenset({"operation_name", "correlation_id"})


class TaskMetadata(typ.TypedDict, total=False):
    """Optional metadata attached to task-factory task creation kwargs."""

    operation_name: str
    correlation_id: str


def _validate_task_metadata(metadata: TaskMetadata) -> TaskMetadata | None:
    """Validate metadata shape and drop it when empty."""
    unsupported_keys = set(metadata) - _TASK_METADATA_KEYS
    if unsupported_keys:
        keys = ", ".join(repr(key) for key in sorted(unsupported_keys))
        msg = f"Unsupported task metadata keys: {keys}"
        raise ValueError(msg)

    validated: TaskMetadata = {}
    for field_name in ("operation_name", "correlation_id"):
        value = metadata.get(field_name)
        if value is None:
            continue
        if not isinstance(value, str) or not value:
            msg = f"Task metadata {field_name!r} must be a non-empty string."
            raise TypeError(msg)
        validated[field_name] = value
    return validated or None


def create_task[T](
    coro: cabc.Coroutine[object, object, T],
    /,
    *,
    name: str | None = None,
    metadata: TaskMetadata | None = None,
) -> asyncio.Task[T]:
    """Create an asyncio task with optional task-factory metadata."""
    validated = _validate_task_metadata(metadata) if metadata is not None else None
    loop = asyncio.get_running_loop()
    task_creator = typ.cast("typ.Callable[..., asyncio.Task[T]]", loop.create_task)
    if validated is None or loop.get_task_factory() is None:
        return task_creator(coro, name=name)
    return task_creator(coro, name=name, **{TASK_METADATA_KWARG: validated})


class BackgroundTasks:
    """Fire-and-forget task set.

    Tasks are referenced until they finish so the event loop cannot collect
    them mid-flight. Failures are logged and discarded; nothing is re-raised
    into the code that spawned the task.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[object]] = set()
        self._keyed: dict[str, asyncio.Task[object]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        coro: cabc.Coroutine[object, object, object],
        *,
        operation_name: str,
        correlation_id: str | None = None,
    ) -> asyncio.Task[object]:
        """Start ``coro`` in the background and return its task."""
        metadata: TaskMetadata = {"operation_name": operation_name}
        if correlation_id:
            metadata["correlation_id"] = correlation_id
        task = create_task(coro, name=operation_name, metadata=metadata)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def spawn_once(
        self,
        key: str,
        factory: cabc.Callable[[], cabc.Coroutine[object, object, object]],
        *,
        operation_name: str,
        correlation_id: str | None = None,
    ) -> asyncio.Task[object]:
        """Start ``factory()`` unless a task spawned under ``key`` is still running.

        The running task is returned instead, and ``factory`` is not called.
        """
        running = self._keyed.get(key)
        if running is not None and not running.done():
            return running
        task = self.spawn(
            factory(), operation_name=operation_name, correlation_id=correlation_id
        )
        self._keyed[key] = task
        task.add_done_callback(lambda _: self._forget(key, task))
        return task

    def _forget(self, key: str, task: asyncio.Task[object]) -> None:
        if self._keyed.get(key) is task:
            del self._keyed[key]

    def _finished(self, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            log_debug(logger, "Background task %s cancelled.", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            log_warning(
                logger,
                "Background task %s failed: %s",
                task.get_name(),
                exc,
                exc_info=exc,
            )

    async def drain(self) -> None:
        """Wait for every task spawned so far, ignoring their outcomes."""
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)
