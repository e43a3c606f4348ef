"""Fan-in of streams with a shared item type.

Tie-break rule (left-biased): each poll first returns an item buffered by the
previous poll, if any. Otherwise both live inputs are polled, left first. When
both are ready in the same poll, the left item is returned and the right item
is buffered for the very next poll, so nothing is dropped and two
always-ready inputs alternate left, right, left, right.

The merged stream ends only after both inputs have ended; an exhausted input is
closed and never polled again.

Example:
    >>> merged = merge_streams(iter_stream([1, 2, 3]), iter_stream([10, 20]))
    >>> await collect(merged)
    [1, 10, 2, 20, 3]
"""

from __future__ import annotations

import logging
from typing import Final, TypeVar

from .core import DONE, PENDING, BoxStream, Context, Poll, Ready, Stream, StreamBase, close_stream
from .sources import empty_stream

T = TypeVar("T")

logger = logging.getLogger("pullstream.merge")

__all__ = ["Merge", "merge_streams"]

_EMPTY: Final = object()


class Merge(StreamBase[T]):
    """Left-biased merge of two streams."""

    __slots__ = ("_left", "_right", "_buffered")

    def __init__(self, left: Stream[T], right: Stream[T]) -> None:
        self._left: Stream[T] | None = left
        self._right: Stream[T] | None = right
        self._buffered: object = _EMPTY

    def poll_next(self, cx: Context) -> Poll[T]:
        if self._buffered is not _EMPTY:
            item, self._buffered = self._buffered, _EMPTY
            return Ready(item)  # type: ignore[arg-type]

        left = self._poll_side(cx, "_left")
        right = self._poll_side(cx, "_right")
        if isinstance(left, Ready):
            if isinstance(right, Ready):
                self._buffered = right.item
            return left
        if isinstance(right, Ready):
            return right
        if self._left is None and self._right is None:
            return DONE
        return PENDING

    def _poll_side(self, cx: Context, side: str) -> Poll[T]:
        stream: Stream[T] | None = getattr(self, side)
        if stream is None:
            return DONE
        poll = stream.poll_next(cx)
        if poll is DONE:
            logger.debug("merge input %s exhausted", side.lstrip("_"))
            close_stream(stream)
            setattr(self, side, None)
        return poll

    def close(self) -> None:
        self._buffered = _EMPTY
        for side in ("_left", "_right"):
            if (stream := getattr(self, side)) is not None:
                close_stream(stream)
                setattr(self, side, None)


def merge_streams(*streams: Stream[T]) -> StreamBase[T]:
    """Merge any number of streams.

    Folds left: merge_streams(a, b, c) is Merge(Merge(a, b), c), so earlier
    arguments win ties. With no streams the result is empty; a single stream is
    returned boxed.
    """
    if not streams:
        return empty_stream()
    merged: Stream[T] = streams[0]
    for stream in streams[1:]:
        merged = Merge(merged, stream)
    if isinstance(merged, Merge):
        return merged
    return BoxStream(merged)
