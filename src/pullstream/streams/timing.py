"""Timing combinators: per-item deadlines and minimum emission spacing.

- timeout_stream: items become Result[T, Elapsed]; a late item produces one
  Err(Elapsed) and is still delivered afterwards
- throttle_stream: polls the inner stream at most once per interval after an
  emission; nothing is dropped (rate limiter, not sampler)

Both own a TimerSlot: at most one event-loop timer registration, replaced on
each poll and cancelled on close().

Example:
    >>> async for result in timeout_stream(messages, 0.2):
    ...     print(result.unwrap() if result.is_ok() else "late")
"""

from __future__ import annotations

import asyncio
import logging
from typing import TypeVar

from pullstream.foundation.config import get_settings
from pullstream.foundation.errors import Elapsed, Err, Ok, Result
from pullstream.foundation.validation import Duration, duration_seconds

from .core import DONE, PENDING, Context, Poll, Ready, Stream, StreamBase, close_stream

T = TypeVar("T")

logger = logging.getLogger("pullstream.timing")

__all__ = ["TimerSlot", "Timeout", "Throttle", "timeout_stream", "throttle_stream"]


class TimerSlot:
    """A single re-armable timer registration.

    `arm` replaces any previous registration so the latest poll's waker is the
    one woken; `cancel` releases it. The owner calls `cancel` from `close()`.
    """

    __slots__ = ("_handle",)

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None

    def arm(self, cx: Context, when: float) -> None:
        """Wake `cx.waker` at loop time `when`."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = cx.require_loop().call_at(when, cx.waker.wake)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def armed(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()


class Timeout(StreamBase[Result[T, Elapsed]]):
    """Per-item deadline around an inner stream.

    A deadline is set when a poll cycle starts with none in force. If it passes
    before the inner stream is ready, one Err(Elapsed) is emitted and the
    deadline is disarmed; the inner stream keeps being polled and its item
    arrives later as Ok. A fresh deadline starts only after an item is delivered.
    """

    __slots__ = ("_inner", "_timeout", "_deadline", "_armed", "_timer")

    def __init__(self, stream: Stream[T], timeout: float) -> None:
        self._inner: Stream[T] | None = stream
        self._timeout = timeout
        self._deadline: float | None = None
        self._armed = True
        self._timer = TimerSlot()

    def poll_next(self, cx: Context) -> Poll[Result[T, Elapsed]]:
        if self._inner is None:
            return DONE
        if self._armed and self._deadline is None:
            self._deadline = cx.time() + self._timeout

        poll = self._inner.poll_next(cx)
        if isinstance(poll, Ready):
            self._timer.cancel()
            self._deadline, self._armed = None, True
            return Ready(Ok(poll.item))
        if poll is DONE:
            self.close()
            return DONE

        if self._deadline is not None:
            if cx.time() >= self._deadline:
                self._timer.cancel()
                self._deadline, self._armed = None, False
                logger.debug("deadline of %ss elapsed", self._timeout)
                return Ready(Err(Elapsed(self._timeout)))
            self._timer.arm(cx, self._deadline)
        return PENDING

    def close(self) -> None:
        self._timer.cancel()
        if self._inner is not None:
            close_stream(self._inner)
            self._inner = None

    @property
    def timeout(self) -> float:
        return self._timeout


class Throttle(StreamBase[T]):
    """Minimum spacing between polls of the inner stream after each emission.

    While the window is closed the inner stream is not polled at all; a timer
    wakes the consumer when it reopens. PENDING and DONE from the inner stream
    leave the window untouched.
    """

    __slots__ = ("_inner", "_interval", "_next_allowed", "_timer")

    def __init__(self, stream: Stream[T], interval: float) -> None:
        self._inner: Stream[T] | None = stream
        self._interval = interval
        self._next_allowed: float | None = None
        self._timer = TimerSlot()

    def poll_next(self, cx: Context) -> Poll[T]:
        if self._inner is None:
            return DONE
        if self._next_allowed is not None:
            now = cx.time()
            if now < self._next_allowed:
                self._timer.arm(cx, self._next_allowed)
                return PENDING
            self._timer.cancel()

        poll = self._inner.poll_next(cx)
        if isinstance(poll, Ready):
            self._next_allowed = cx.time() + self._interval
        elif poll is DONE:
            self.close()
        return poll

    def close(self) -> None:
        self._timer.cancel()
        if self._inner is not None:
            close_stream(self._inner)
            self._inner = None

    @property
    def interval(self) -> float:
        return self._interval


def timeout_stream(stream: Stream[T], timeout: Duration | None = None) -> Timeout[T]:
    """Wrap items as Ok(item), inserting Err(Elapsed) when an item is late.

    Args:
        stream: Inner stream
        timeout: Seconds (or timedelta) per item; defaults to settings.streams.default_timeout

    Raises:
        InvalidArgument: If timeout is not positive
    """
    seconds = get_settings().streams.default_timeout if timeout is None else duration_seconds(timeout, name="timeout")
    return Timeout(stream, seconds)


def throttle_stream(stream: Stream[T], interval: Duration | None = None) -> Throttle[T]:
    """Poll `stream` at most once per `interval` after each emitted item.

    Args:
        stream: Inner stream; items it buffers are delayed, never dropped
        interval: Seconds (or timedelta); defaults to settings.streams.default_throttle

    Raises:
        InvalidArgument: If interval is not positive
    """
    seconds = get_settings().streams.default_throttle if interval is None else duration_seconds(interval, name="interval")
    return Throttle(stream, seconds)
