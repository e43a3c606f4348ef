"""Producer task management.

Producer tasks feed channels independently of the streams built on top of them.
They are not owned by any stream: closing a stream chain leaves its producers
running until they notice the closed channel (Sender.send raises ChannelClosed)
or until the scope that spawned them ends.

- spawn: detached producer, strongly referenced until done, lifecycle logged
- TaskHandle: state and outcome of one producer without exposing asyncio.Task
- ProducerScope: producers tied to an `async with` block, cancelled on exit

Example:
    >>> async with ProducerScope() as scope:
    ...     tx, rx = channel()
    ...     scope.spawn(send_letters(tx), name="letters")
    ...     async for item in ReceiverStream(rx):
    ...         print(item)
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

from pullstream.foundation.errors import ChannelClosed, StreamError
from pullstream.runtime.observability import get_logger

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")

log = get_logger("pullstream.producer")

# The event loop holds only weak references to tasks.
_running: set[asyncio.Task[object]] = set()


class TaskState(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TaskHandle(Generic[T]):
    """Read-only view of a spawned producer."""

    __slots__ = ("_task",)

    def __init__(self, task: asyncio.Task[T]) -> None:
        self._task = task

    @property
    def name(self) -> str:
        return self._task.get_name()

    @property
    def state(self) -> TaskState:
        task = self._task
        if not task.done():
            return TaskState.RUNNING
        if task.cancelled():
            return TaskState.CANCELLED
        return TaskState.COMPLETED if task.exception() is None else TaskState.FAILED

    @property
    def done(self) -> bool:
        return self._task.done()

    def result(self) -> T:
        """Producer return value; re-raises its exception, InvalidStateError while running."""
        return self._task.result()

    def cancel(self, msg: str | None = None) -> bool:
        return self._task.cancel(msg)

    async def wait(self) -> T:
        return await self._task

    def __repr__(self) -> str:
        return f"TaskHandle({self.name!r}, {self.state})"


def _report(task: asyncio.Task[object]) -> None:
    _running.discard(task)
    name = task.get_name()
    if task.cancelled():
        log.debug("producer cancelled", task=name)
        return
    match task.exception():
        case None:
            log.debug("producer finished", task=name)
        case ChannelClosed():
            log.debug("producer stopped: receiver closed", task=name)
        case exc:
            report = StreamError.from_exception(exc)  # type: ignore[arg-type]
            log.error("producer failed", task=name, code=report.code.value, error=report.message)


def spawn(coro: Coroutine[object, object, T], *, name: str | None = None) -> TaskHandle[T]:
    """Run `coro` as a detached producer task on the running loop.

    The task may outlive its caller and any stream reading from it. Failures
    are logged, and a ChannelClosed escaping the producer counts as a clean
    exit. Prefer ProducerScope.spawn() when producers should stop with the
    consumer.
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _running.add(task)  # type: ignore[arg-type]
    task.add_done_callback(_report)  # type: ignore[arg-type]
    log.debug("producer started", task=task.get_name())
    return TaskHandle(task)


class ProducerScope:
    """Owns the producers spawned through it for the length of an `async with` block.

    Producers still running when the block exits are cancelled and awaited, so
    infinite producers such as tick counters end with their consumer.
    """

    __slots__ = ("_handles", "_open")

    def __init__(self) -> None:
        self._handles: list[TaskHandle[object]] = []
        self._open = False

    def spawn(self, coro: Coroutine[object, object, T], *, name: str | None = None) -> TaskHandle[T]:
        """Spawn a producer owned by this scope.

        Raises:
            RuntimeError: If called outside the `async with` block
        """
        if not self._open:
            coro.close()
            raise RuntimeError("ProducerScope.spawn() used outside `async with`")
        handle = spawn(coro, name=name)
        self._handles.append(handle)  # type: ignore[arg-type]
        return handle

    @property
    def handles(self) -> list[TaskHandle[object]]:
        return list(self._handles)

    async def __aenter__(self) -> ProducerScope:
        self._open = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._open = False
        live = [h for h in self._handles if not h.done]
        for handle in live:
            handle.cancel()
        if live:
            await asyncio.gather(*(h.wait() for h in live), return_exceptions=True)
