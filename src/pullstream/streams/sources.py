"""Stream sources.

- iter_stream: an already-materialised iterable; never PENDING, never suspends
- empty_stream: ends immediately
- interval_stream: timer-driven counter, one tick per period
- producer_stream: spawn a producer coroutine that feeds a channel, read it as a stream
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine, Iterable, Iterator
from typing import TypeVar

from pullstream.foundation.config import get_settings
from pullstream.foundation.errors import ChannelClosed
from pullstream.foundation.validation import Duration, duration_seconds
from pullstream.runtime.concurrency import TaskHandle, spawn

from .channel import ReceiverStream, Sender, channel
from .core import DONE, PENDING, Context, Poll, Ready, StreamBase
from .timing import TimerSlot

T = TypeVar("T")

logger = logging.getLogger("pullstream.sources")

__all__ = ["iter_stream", "empty_stream", "interval_stream", "producer_stream", "IterStream", "Interval"]


class IterStream(StreamBase[T]):
    """Synchronous iterable as a stream. Every poll is Ready or DONE."""

    __slots__ = ("_it",)

    def __init__(self, iterable: Iterable[T]) -> None:
        self._it: Iterator[T] | None = iter(iterable)

    def poll_next(self, cx: Context) -> Poll[T]:
        if self._it is None:
            return DONE
        try:
            return Ready(next(self._it))
        except StopIteration:
            self._it = None
            return DONE

    def close(self) -> None:
        self._it = None


class Interval(StreamBase[int]):
    """Counter that yields start, start+1, ... once per period.

    The first tick is one period after the first poll. Ticks are not replayed
    after a slow consumer: the next one is due a period after each emission.
    """

    __slots__ = ("_period", "_count", "_due", "_timer", "_closed")

    def __init__(self, period: float, start: int) -> None:
        self._period = period
        self._count = start
        self._due: float | None = None
        self._timer = TimerSlot()
        self._closed = False

    def poll_next(self, cx: Context) -> Poll[int]:
        if self._closed:
            return DONE
        now = cx.time()
        if self._due is None:
            self._due = now + self._period
        if now < self._due:
            self._timer.arm(cx, self._due)
            return PENDING
        self._timer.cancel()
        self._due = now + self._period
        value, self._count = self._count, self._count + 1
        return Ready(value)

    def close(self) -> None:
        self._closed = True
        self._timer.cancel()


def iter_stream(iterable: Iterable[T]) -> IterStream[T]:
    """Wrap a synchronous iterable.

    Example:
        >>> await collect(iter_stream(range(3)))
        [0, 1, 2]
    """
    return IterStream(iterable)


def empty_stream() -> IterStream[T]:
    """A stream with no items."""
    return IterStream(())


def interval_stream(period: Duration | None = None, *, start: int = 1) -> Interval:
    """Count upward once per `period` (defaults to settings.streams.default_interval)."""
    seconds = get_settings().streams.default_interval if period is None else duration_seconds(period, name="period")
    return Interval(seconds, start)


async def _run_producer(producer: Callable[[Sender[T]], Coroutine[object, object, None]], tx: Sender[T]) -> None:
    with tx:
        try:
            await producer(tx)
        except ChannelClosed:
            logger.debug("producer stopped: receiver closed")


def producer_stream(
    producer: Callable[[Sender[T]], Coroutine[object, object, None]],
    *,
    name: str | None = None,
    spawner: Callable[..., TaskHandle[None]] | None = None,
) -> ReceiverStream[T]:
    """Spawn `producer(sender)` and return the receiving stream.

    The sender is closed when the producer returns or fails, which ends the
    stream once its queue drains. A ChannelClosed escaping the producer (the
    consumer went away) is a clean exit. Pass `spawner=scope.spawn` to tie the
    producer to a ProducerScope instead of leaving it detached.

    Example:
        >>> async def letters(tx):
        ...     for c in "abc":
        ...         tx.send(c)
        ...         await asyncio.sleep(0.1)
        >>> async for c in producer_stream(letters):
        ...     print(c)
    """
    tx, rx = channel()
    (spawner or spawn)(_run_producer(producer, tx), name=name)
    return ReceiverStream(rx)
