"""Unbounded multi-producer, single-consumer channel and its stream adapter.

`channel()` returns a (Sender, Receiver) pair sharing one FIFO queue.
- Sender.send never blocks; it raises ChannelClosed once the receiver is gone
- Senders are cloned for extra producers
- The receiver reports end of sequence once the queue is drained and every
  sender is gone

An end is gone once it is closed (`close()` or `with`) or garbage collected,
whichever comes first. A consumer that abandons a stream chain therefore
makes its producers' next send fail, and a producer that drops its sender
without closing it still ends the stream.

ReceiverStream adapts a Receiver to the Stream contract. Receiver already
implements it, so ReceiverStream mostly exists to name the adaptation at the
call site and to own the receiver's lifetime.

Example:
    >>> tx, rx = channel()
    >>> async def produce():
    ...     with tx:
    ...         for letter in "abc":
    ...             tx.send(letter)
    ...             await asyncio.sleep(0.01)
    >>> spawn(produce())
    >>> await collect(ReceiverStream(rx))
    ['a', 'b', 'c']
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections import deque
from typing import TYPE_CHECKING, Generic, TypeVar

from pullstream.foundation.errors import ChannelClosed

from .core import DONE, PENDING, Context, Poll, Ready, StreamBase, Waker

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")

logger = logging.getLogger("pullstream.channel")

__all__ = ["channel", "Sender", "Receiver", "ReceiverStream"]


class _Chan(Generic[T]):
    """State shared by every Sender and the Receiver of one channel."""

    __slots__ = ("queue", "senders", "receiver_open", "waker", "lock")

    def __init__(self) -> None:
        self.queue: deque[T] = deque()
        self.senders = 0
        self.receiver_open = True
        self.waker: Waker | None = None
        # Reentrant: a finalizer for another end of this channel can run
        # during garbage collection while the lock is held.
        self.lock = threading.RLock()


def _release_sender(chan: _Chan[object]) -> None:
    with chan.lock:
        chan.senders -= 1
        last = chan.senders == 0
        waker, chan.waker = (chan.waker, None) if last else (None, chan.waker)
    if last:
        logger.debug("last sender gone")
    if waker is not None:
        waker.wake()


def _release_receiver(chan: _Chan[object]) -> None:
    with chan.lock:
        chan.receiver_open = False
        dropped = len(chan.queue)
        chan.queue.clear()
        chan.waker = None
    logger.debug("receiver gone, %d queued item(s) dropped", dropped)


def _guard(owner: object, release, chan: _Chan[object]) -> weakref.finalize:
    finalizer = weakref.finalize(owner, release, chan)
    finalizer.atexit = False
    return finalizer


class Sender(Generic[T]):
    """Producer end of a channel."""

    __slots__ = ("_chan", "_release", "__weakref__")

    def __init__(self, chan: _Chan[T]) -> None:
        with chan.lock:
            chan.senders += 1
        self._chan = chan
        self._release = _guard(self, _release_sender, chan)

    def send(self, item: T) -> None:
        """Queue `item` for the receiver.

        Raises:
            ChannelClosed: If the receiver is gone, or this sender was closed
        """
        chan = self._chan
        with chan.lock:
            if not self._release.alive or not chan.receiver_open:
                raise ChannelClosed(item)
            chan.queue.append(item)
            waker, chan.waker = chan.waker, None
        if waker is not None:
            waker.wake()

    def clone(self) -> Sender[T]:
        """Another sender on the same channel; the stream ends only when all are gone."""
        if not self._release.alive:
            raise ChannelClosed(None, "cannot clone a closed sender")
        return Sender(self._chan)

    def close(self) -> None:
        """Close this sender. Idempotent."""
        self._release()

    @property
    def is_closed(self) -> bool:
        """True when sending can no longer succeed."""
        return not self._release.alive or not self._chan.receiver_open

    def __enter__(self) -> Sender[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class Receiver(StreamBase[T]):
    """Consumer end of a channel."""

    __slots__ = ("_chan", "_release", "__weakref__")

    def __init__(self, chan: _Chan[T]) -> None:
        self._chan = chan
        self._release = _guard(self, _release_receiver, chan)

    def poll_next(self, cx: Context) -> Poll[T]:
        chan = self._chan
        with chan.lock:
            if chan.queue:
                return Ready(chan.queue.popleft())
            if chan.senders == 0 or not chan.receiver_open:
                chan.waker = None
                return DONE
            chan.waker = cx.waker
            return PENDING

    def close(self) -> None:
        """Close the receiving side; queued items are discarded and senders start failing."""
        self._release()

    def __len__(self) -> int:
        with self._chan.lock:
            return len(self._chan.queue)


class ReceiverStream(StreamBase[T]):
    """Stream adapter over a channel Receiver.

    PENDING while the queue is empty and a sender is open (the latest poll's
    waker is registered), Ready in FIFO order, DONE once drained with every
    sender gone. Dropping the adapter drops the receiver with it.
    """

    __slots__ = ("_rx",)

    def __init__(self, receiver: Receiver[T]) -> None:
        self._rx = receiver

    def poll_next(self, cx: Context) -> Poll[T]:
        return self._rx.poll_next(cx)

    def close(self) -> None:
        self._rx.close()

    def into_inner(self) -> Receiver[T]:
        return self._rx


def channel() -> tuple[Sender[T], Receiver[T]]:
    """Create an unbounded MPSC channel."""
    chan: _Chan[T] = _Chan()
    return Sender(chan), Receiver(chan)
