"""Transform and bounding combinators.

Each combinator owns its inner stream(s) and is itself a stream, so they nest
freely. All are order preserving and fused.

Key Operations:
    - map_stream: 1:1 transform
    - filter_stream: order-preserving subsequence
    - take_stream: at most n items, then the inner stream is closed
    - skip_stream: drop the first n items
    - enumerate_stream: pair items with a running index
    - chain_streams: one stream after another
    - stop_after_errors: end a Result stream after a number of Err items

Example:
    >>> evens = filter_stream(iter_stream(range(100)), lambda x: x % 2 == 0)
    >>> await collect(take_stream(map_stream(evens, str), 3))
    ['0', '2', '4']
"""

from __future__ import annotations

from typing import Callable, TypeVar

from pullstream.foundation.errors import Result
from pullstream.foundation.validation import count

from .core import DONE, PENDING, Context, Poll, Ready, Stream, StreamBase, close_stream

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")

__all__ = [
    "map_stream",
    "filter_stream",
    "take_stream",
    "skip_stream",
    "enumerate_stream",
    "chain_streams",
    "stop_after_errors",
]


class _Wrapper(StreamBase[U]):
    """Owns one inner stream; close() releases it and fuses at DONE."""

    __slots__ = ("_inner",)

    def __init__(self, stream: Stream[object]) -> None:
        self._inner: Stream[object] | None = stream

    def close(self) -> None:
        if self._inner is not None:
            close_stream(self._inner)
            self._inner = None


class Map(_Wrapper[U]):
    __slots__ = ("_func",)

    def __init__(self, stream: Stream[T], func: Callable[[T], U]) -> None:
        super().__init__(stream)
        self._func = func

    def poll_next(self, cx: Context) -> Poll[U]:
        if self._inner is None:
            return DONE
        match self._inner.poll_next(cx):
            case Ready(item):
                return Ready(self._func(item))  # type: ignore[arg-type]
            case poll:
                if poll is DONE:
                    self.close()
                return poll  # type: ignore[return-value]


class Filter(_Wrapper[T]):
    __slots__ = ("_predicate",)

    def __init__(self, stream: Stream[T], predicate: Callable[[T], bool]) -> None:
        super().__init__(stream)
        self._predicate = predicate

    def poll_next(self, cx: Context) -> Poll[T]:
        # Rejected candidates are skipped within this same poll.
        while self._inner is not None:
            poll = self._inner.poll_next(cx)
            if isinstance(poll, Ready):
                if self._predicate(poll.item):  # type: ignore[arg-type]
                    return poll  # type: ignore[return-value]
                continue
            if poll is DONE:
                self.close()
                break
            return PENDING
        return DONE


class Take(_Wrapper[T]):
    __slots__ = ("_remaining",)

    def __init__(self, stream: Stream[T], n: int) -> None:
        super().__init__(stream)
        self._remaining = n
        if n == 0:
            self.close()

    def poll_next(self, cx: Context) -> Poll[T]:
        if self._remaining == 0 or self._inner is None:
            return DONE
        poll = self._inner.poll_next(cx)
        if isinstance(poll, Ready):
            self._remaining -= 1
            if self._remaining == 0:
                self.close()
            return poll  # type: ignore[return-value]
        if poll is DONE:
            self._remaining = 0
            self.close()
        return poll  # type: ignore[return-value]

    @property
    def remaining(self) -> int:
        return self._remaining


class Skip(_Wrapper[T]):
    __slots__ = ("_to_skip",)

    def __init__(self, stream: Stream[T], n: int) -> None:
        super().__init__(stream)
        self._to_skip = n

    def poll_next(self, cx: Context) -> Poll[T]:
        while self._inner is not None:
            poll = self._inner.poll_next(cx)
            if isinstance(poll, Ready) and self._to_skip:
                self._to_skip -= 1
                continue
            if poll is DONE:
                self.close()
            return poll  # type: ignore[return-value]
        return DONE


class Enumerate(_Wrapper[tuple[int, T]]):
    __slots__ = ("_index",)

    def __init__(self, stream: Stream[T], start: int) -> None:
        super().__init__(stream)
        self._index = start

    def poll_next(self, cx: Context) -> Poll[tuple[int, T]]:
        if self._inner is None:
            return DONE
        poll = self._inner.poll_next(cx)
        if isinstance(poll, Ready):
            index, self._index = self._index, self._index + 1
            return Ready((index, poll.item))  # type: ignore[arg-type]
        if poll is DONE:
            self.close()
        return poll


class Chain(StreamBase[T]):
    """Drains each stream in turn; a stream is closed as soon as it ends."""

    __slots__ = ("_streams",)

    def __init__(self, streams: list[Stream[T]]) -> None:
        self._streams = streams

    def poll_next(self, cx: Context) -> Poll[T]:
        while self._streams:
            poll = self._streams[0].poll_next(cx)
            if poll is not DONE:
                return poll
            close_stream(self._streams.pop(0))
        return DONE

    def close(self) -> None:
        while self._streams:
            close_stream(self._streams.pop(0))


class StopAfterErrors(_Wrapper[Result[T, E]]):
    __slots__ = ("_limit", "_seen")

    def __init__(self, stream: Stream[Result[T, E]], limit: int) -> None:
        super().__init__(stream)
        self._limit = limit
        self._seen = 0
        if limit == 0:
            self.close()

    def poll_next(self, cx: Context) -> Poll[Result[T, E]]:
        if self._inner is None:
            return DONE
        poll = self._inner.poll_next(cx)
        if isinstance(poll, Ready) and poll.item.is_err():  # type: ignore[attr-defined]
            self._seen += 1
            if self._seen >= self._limit:
                self.close()
        elif poll is DONE:
            self.close()
        return poll  # type: ignore[return-value]


def map_stream(stream: Stream[T], func: Callable[[T], U]) -> Map[U]:
    """Apply `func` to every item. `func` runs inside the poll and should be cheap and pure."""
    return Map(stream, func)


def filter_stream(stream: Stream[T], predicate: Callable[[T], bool]) -> Filter[T]:
    """Keep only items for which `predicate` is true."""
    return Filter(stream, predicate)


def take_stream(stream: Stream[T], n: int) -> Take[T]:
    """Yield at most `n` items. The inner stream is closed, and never polled
    again, as soon as the count runs out; with n=0 it is never polled at all.

    Raises:
        InvalidArgument: If n is negative or not an int
    """
    return Take(stream, count(n, name="n"))


def skip_stream(stream: Stream[T], n: int) -> Skip[T]:
    """Drop the first `n` items."""
    return Skip(stream, count(n, name="n"))


def enumerate_stream(stream: Stream[T], start: int = 0) -> Enumerate[T]:
    """Yield (index, item) pairs."""
    return Enumerate(stream, start)


def chain_streams(*streams: Stream[T]) -> Chain[T]:
    """Yield every item of the first stream, then the second, and so on."""
    return Chain(list(streams))


def stop_after_errors(stream: Stream[Result[T, E]], limit: int) -> StopAfterErrors[T, E]:
    """Consumer policy for Result streams: end after `limit` Err items have been delivered.

    The Err that reaches the limit is still delivered; the inner stream is then
    closed. Pairs naturally with timeout_stream.

    Example:
        >>> guarded = stop_after_errors(timeout_stream(feed, 0.5), limit=3)
    """
    return StopAfterErrors(stream, count(limit, name="limit"))
