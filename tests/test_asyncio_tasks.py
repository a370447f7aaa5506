"""Tests for metadata-aware task creation and background task sets."""

from __future__ import annotations

import asyncio
import contextlib
import sys
import typing as typ

import pytest

from civicbroker.asyncio_tasks import (
    TASK_METADATA_KWARG,
    BackgroundTasks,
    TaskMetadata,
    create_task,
)


@contextlib.contextmanager
def _recording_task_factory() -> typ.Iterator[list[dict[str, object]]]:
    """Install a task factory that records kwargs for every created task."""
    loop = asyncio.get_running_loop()
    previous_factory = loop.get_task_factory()
    captured: list[dict[str, object]] = []

    def _factory(
        running_loop: asyncio.AbstractEventLoop,
        coro: typ.Coroutine[object, object, object],
        **task_kwargs: object,
    ) -> asyncio.Task[object]:
        captured.append(dict(task_kwargs))
        return asyncio.Task(
            coro,
            loop=running_loop,
            name=typ.cast("str | None", task_kwargs.get("name")),
        )

    loop.set_task_factory(_factory)
    try:
        yield captured
    finally:
        loop.set_task_factory(previous_factory)


@pytest.mark.skipif(
    sys.version_info < (3, 14),
    reason="loop.create_task forwards arbitrary kwargs from Python 3.14",
)
@pytest.mark.asyncio
async def test_create_task_forwards_metadata_to_task_factories() -> None:
    """Metadata reaches custom task factories under a dedicated kwarg."""

    async def _job() -> str:
        await asyncio.sleep(0)
        return "done"

    metadata: TaskMetadata = {"operation_name": "warm_photo_cache", "correlation_id": "p1"}
    with _recording_task_factory() as captured:
        result = await create_task(_job(), name="warm", metadata=metadata)

    kwargs = next(item for item in captured if item.get("name") == "warm")
    assert result == "done", f"expected result == 'done', got {result!r}"
    assert kwargs[TASK_METADATA_KWARG] == metadata, (
        f"expected metadata {metadata!r}, got {kwargs[TASK_METADATA_KWARG]!r}"
    )


def test_create_task_rejects_unsupported_metadata_key() -> None:
    """Unsupported metadata keys are rejected with a clear error."""
    coro = asyncio.sleep(0)
    try:
        with pytest.raises(ValueError, match="Unsupported task metadata keys"):
            create_task(
                coro,
                metadata=typ.cast("TaskMetadata", {"priority": "high"}),
            )
    finally:
        coro.close()


@pytest.mark.parametrize(
    ("metadata", "expected_pattern"),
    [
        ({"operation_name": 123}, "operation_name"),
        ({"operation_name": ""}, "operation_name"),
        ({"correlation_id": ""}, "correlation_id"),
    ],
    ids=["operation_name_non_string", "operation_name_empty", "correlation_id_empty"],
)
def test_create_task_rejects_invalid_metadata_values(
    metadata: dict[str, object],
    expected_pattern: str,
) -> None:
    """Invalid metadata values raise typed validation errors."""
    coro = asyncio.sleep(0)
    try:
        with pytest.raises(TypeError, match=expected_pattern):
            create_task(coro, metadata=typ.cast("TaskMetadata", metadata))
    finally:
        coro.close()


@pytest.mark.asyncio
async def test_create_task_ignores_metadata_without_custom_factory() -> None:
    """Custom metadata is ignored when the running loop has no task factory."""
    loop = asyncio.get_running_loop()
    previous_factory = loop.get_task_factory()
    loop.set_task_factory(None)
    try:
        result = await create_task(
            asyncio.sleep(0, result="ok"),
            metadata={"operation_name": "tests.no_factory"},
        )
    finally:
        loop.set_task_factory(previous_factory)

    assert result == "ok", f"expected task result 'ok', got {result!r}"


@pytest.mark.asyncio
async def test_background_failures_are_contained() -> None:
    """A failing background task neither raises nor lingers."""
    tasks = BackgroundTasks()
    ran: list[str] = []

    async def _fail() -> None:
        await asyncio.sleep(0)
        msg = "warm failed"
        raise RuntimeError(msg)

    async def _succeed() -> None:
        await asyncio.sleep(0)
        ran.append("ok")

    tasks.spawn(_fail(), operation_name="fail", correlation_id="p1")
    tasks.spawn(_succeed(), operation_name="succeed")
    assert len(tasks) == 2, "Expected both tasks to be tracked."

    await tasks.drain()

    assert ran == ["ok"], "Expected the healthy task to complete."
    assert len(tasks) == 0, "Expected finished tasks to be released."


@pytest.mark.asyncio
async def test_drain_waits_for_tasks_spawned_while_draining() -> None:
    """Tasks spawned by background work are awaited as well."""
    tasks = BackgroundTasks()
    ran: list[str] = []

    async def _child() -> None:
        await asyncio.sleep(0)
        ran.append("child")

    async def _parent() -> None:
        await asyncio.sleep(0)
        tasks.spawn(_child(), operation_name="child")

    tasks.spawn(_parent(), operation_name="parent")
    await tasks.drain()

    assert ran == ["child"], "Expected the nested task to complete."


@pytest.mark.asyncio
async def test_spawn_once_reuses_the_running_task() -> None:
    """A key with a task in flight does not start a second one."""
    tasks = BackgroundTasks()
    ran: list[str] = []

    async def _warm(label: str) -> None:
        await asyncio.sleep(0)
        ran.append(label)

    first = tasks.spawn_once("a.jpg", lambda: _warm("first"), operation_name="warm")
    second = tasks.spawn_once("a.jpg", lambda: _warm("second"), operation_name="warm")
    await tasks.drain()
    third = tasks.spawn_once("a.jpg", lambda: _warm("third"), operation_name="warm")
    await tasks.drain()

    assert first is second, "Expected the running task to be returned."
    assert third is not first, "Expected a finished key to start afresh."
    assert ran == ["first", "third"], f"Expected two runs, got {ran!r}."
