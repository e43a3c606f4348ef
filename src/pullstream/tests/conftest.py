"""Shared fixtures: poll-counting wrapper and channel producers."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

import pytest

from pullstream.foundation.config import clear_settings_cache
from pullstream.streams import PENDING, Context, Poll, Sender, Stream, StreamBase, close_stream


class CountingStream(StreamBase[object]):
    """Records every poll and close made on the wrapped stream."""

    __slots__ = ("inner", "polls", "pending", "closed")

    def __init__(self, inner: Stream[object]) -> None:
        self.inner = inner
        self.polls = 0
        self.pending = 0
        self.closed = False

    def poll_next(self, cx: Context) -> Poll[object]:
        self.polls += 1
        poll = self.inner.poll_next(cx)
        if poll is PENDING:
            self.pending += 1
        return poll

    def close(self) -> None:
        self.closed = True
        close_stream(self.inner)


async def send_with_delays(tx: Sender[object], items: Iterable[object], delays: Sequence[float]) -> None:
    """Sleep delays[i] before sending the i-th item, then close the sender."""
    with tx:
        for item, delay in zip(items, delays):
            await asyncio.sleep(delay)
            tx.send(item)


@pytest.fixture
def noop_cx() -> Context:
    return Context.noop()


@pytest.fixture(autouse=True)
def _fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()
