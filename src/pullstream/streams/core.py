"""Core pull-based stream contract and consumption driver.

A stream is any object with a `poll_next(cx)` method returning one of:
    - PENDING: no item yet; the stream arranged for `cx.waker.wake()` to be called
    - Ready(item): one item (which may itself be None); the sequence continues
    - DONE: end of sequence; every later poll returns DONE as well (fused)

Polling is synchronous. Suspension happens only in the driver (`next_item`),
which awaits a future that the waker resolves. Stream objects live on the heap
and never move, so wakers and timer handles may keep references into
combinator state until they fire or are cancelled.

Key Operations:
    - next_item: await the next item (or a default / StopAsyncIteration at the end)
    - iterate: async-iterator view over any Stream
    - collect: drain a stream into a list
    - close_stream: release a stream's timers, wake registrations and inner streams

Example:
    >>> s = take_stream(map_stream(iter_stream(range(10)), lambda x: x * x), 3)
    >>> await collect(s)
    [0, 1, 4]
"""

from __future__ import annotations

import asyncio
import threading
import weakref
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Generic, Protocol, TypeVar, Union, overload, runtime_checkable

from pullstream.foundation.errors import StreamBusyError

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")
U = TypeVar("U")
T_co = TypeVar("T_co", covariant=True)

__all__ = [
    "PENDING",
    "DONE",
    "Ready",
    "Poll",
    "Waker",
    "Context",
    "Stream",
    "StreamBase",
    "BoxStream",
    "poll_fn",
    "close_stream",
    "next_item",
    "iterate",
    "collect",
]


# ─────────────────────────────────────────────────────────────────────────────
# Poll outcomes
# ─────────────────────────────────────────────────────────────────────────────


class _Pending:
    __slots__ = ()

    def __repr__(self) -> str:
        return "PENDING"

    def __reduce__(self) -> str:
        return "PENDING"


class _Done:
    __slots__ = ()

    def __repr__(self) -> str:
        return "DONE"

    def __reduce__(self) -> str:
        return "DONE"


PENDING: Final = _Pending()
DONE: Final = _Done()


@dataclass(frozen=True, slots=True)
class Ready(Generic[T]):
    """One produced item; the sequence continues."""

    item: T


Poll = Union[Ready[T], _Pending, _Done]


# ─────────────────────────────────────────────────────────────────────────────
# Wakers and poll context
# ─────────────────────────────────────────────────────────────────────────────


class Waker:
    """Wake handle for one suspended driver call.

    `wake()` is idempotent and may be called from any thread; only the first
    call after a poll has any effect.
    """

    __slots__ = ("_loop", "_future")

    def __init__(self, loop: asyncio.AbstractEventLoop | None, future: asyncio.Future[None] | None) -> None:
        self._loop = loop
        self._future = future

    @classmethod
    def noop(cls) -> Waker:
        """A waker that does nothing, for manual polling."""
        return cls(None, None)

    def wake(self) -> None:
        fut = self._future
        if fut is None or fut.done():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            fut.set_result(None)
        else:
            try:
                self._loop.call_soon_threadsafe(self._resolve)  # type: ignore[union-attr]
            except RuntimeError:
                # Loop already closed; nobody is left waiting.
                pass

    def _resolve(self) -> None:
        if self._future is not None and not self._future.done():
            self._future.set_result(None)


@dataclass(frozen=True, slots=True)
class Context:
    """Per-poll context: the waker to register, plus the loop for clock and timers."""

    waker: Waker
    loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def noop(cls, loop: asyncio.AbstractEventLoop | None = None) -> Context:
        """Context with a no-op waker. Uses the running loop when there is one."""
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        return cls(Waker.noop(), loop)

    def require_loop(self) -> asyncio.AbstractEventLoop:
        if self.loop is None:
            raise RuntimeError("this stream needs an event loop (timers); poll it from a running loop")
        return self.loop

    def time(self) -> float:
        """Monotonic clock of the event loop."""
        return self.require_loop().time()


# ─────────────────────────────────────────────────────────────────────────────
# Stream contract
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class Stream(Protocol[T_co]):
    """Minimal polling capability. Everything else is built on top of it."""

    def poll_next(self, cx: Context) -> Poll[T_co]: ...


def close_stream(stream: object) -> None:
    """Release a stream's resources if it supports `close()`."""
    close = getattr(stream, "close", None)
    if close is not None:
        close()


class StreamBase(Generic[T]):
    """Shared plumbing for concrete streams: async iteration and scoped close.

    Subclasses implement `poll_next` and, when they hold timers, wake
    registrations or inner streams, `close`. Combinators accept any `Stream`,
    not only StreamBase instances.
    """

    __slots__ = ()

    def poll_next(self, cx: Context) -> Poll[T]:
        raise NotImplementedError

    def close(self) -> None:
        """Release resources and fuse at DONE. Idempotent."""

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        return await next_item(self)

    async def aclose(self) -> None:
        """Async close(), for `contextlib.aclosing`."""
        self.close()

    def __enter__(self) -> StreamBase[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class BoxStream(StreamBase[T]):
    """Type-erased handle that exposes only polling and close.

    Use it where one variable must hold "some stream" regardless of which
    source or combinator produced it.
    """

    __slots__ = ("_inner",)

    def __init__(self, stream: Stream[T]) -> None:
        self._inner: Stream[T] | None = stream

    def poll_next(self, cx: Context) -> Poll[T]:
        if self._inner is None:
            return DONE
        return self._inner.poll_next(cx)

    def close(self) -> None:
        if self._inner is not None:
            close_stream(self._inner)
            self._inner = None

    def __repr__(self) -> str:
        return f"BoxStream({self._inner!r})"


class _PollFn(StreamBase[T]):
    __slots__ = ("_fn", "_done")

    def __init__(self, fn: Callable[[Context], Poll[T]]) -> None:
        self._fn = fn
        self._done = False

    def poll_next(self, cx: Context) -> Poll[T]:
        if self._done:
            return DONE
        poll = self._fn(cx)
        if poll is DONE:
            self._done = True
        return poll

    def close(self) -> None:
        self._done = True


def poll_fn(fn: Callable[[Context], Poll[T]]) -> StreamBase[T]:
    """Build a stream from a poll function. The result is fused after the first DONE."""
    return _PollFn(fn)


# ─────────────────────────────────────────────────────────────────────────────
# Consumption driver
# ─────────────────────────────────────────────────────────────────────────────


_MISSING: Final = object()

# Streams currently being driven, by id, per event loop. One consumer per stream at a time.
_driving: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, set[int]] = weakref.WeakKeyDictionary()
_driving_lock = threading.Lock()


def _active_on(loop: asyncio.AbstractEventLoop) -> set[int]:
    with _driving_lock:
        active = _driving.get(loop)
        if active is None:
            active = _driving[loop] = set()
        return active


@overload
async def next_item(stream: Stream[T]) -> T: ...
@overload
async def next_item(stream: Stream[T], default: U) -> T | U: ...


async def next_item(stream: Stream[T], default: object = _MISSING) -> object:
    """Wait for the next item of `stream`.

    Polls until the stream is Ready or DONE, suspending on PENDING until the
    waker fires. At end of sequence returns `default` when given, otherwise
    raises StopAsyncIteration (like the built-in `anext`).

    Raises:
        StreamBusyError: If another next_item call is already driving `stream`
        StopAsyncIteration: At end of sequence with no default
    """
    loop = asyncio.get_running_loop()
    active, key = _active_on(loop), id(stream)
    if key in active:
        raise StreamBusyError(f"{type(stream).__name__} already has an active consumer")
    active.add(key)
    try:
        while True:
            woken: asyncio.Future[None] = loop.create_future()
            poll = stream.poll_next(Context(Waker(loop, woken), loop))
            if isinstance(poll, Ready):
                return poll.item
            if poll is DONE:
                break
            await woken
    finally:
        active.discard(key)
    if default is _MISSING:
        raise StopAsyncIteration
    return default


class _StreamIterator(Generic[T]):
    __slots__ = ("_stream",)

    def __init__(self, stream: Stream[T]) -> None:
        self._stream = stream

    def __aiter__(self) -> _StreamIterator[T]:
        return self

    async def __anext__(self) -> T:
        return await next_item(self._stream)


def iterate(stream: Stream[T]) -> AsyncIterator[T]:
    """Async-iterator view over any Stream.

    Example:
        >>> async for item in iterate(poll_fn(my_poll)):
        ...     handle(item)
    """
    return _StreamIterator(stream)


async def collect(stream: Stream[T]) -> list[T]:
    """Drain `stream` into a list."""
    return [item async for item in iterate(stream)]
