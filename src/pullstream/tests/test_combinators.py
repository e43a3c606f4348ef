"""Tests for map, filter, take and the supplementary combinators."""

from __future__ import annotations

import pytest
from conftest import CountingStream

from pullstream import (
    DONE,
    PENDING,
    Context,
    Elapsed,
    Err,
    InvalidArgument,
    Ok,
    Ready,
    chain_streams,
    channel,
    collect,
    enumerate_stream,
    filter_stream,
    iter_stream,
    map_stream,
    poll_fn,
    skip_stream,
    stop_after_errors,
    take_stream,
)


# ═════════════════════════════════════════════════════════════════════════════
# map / filter
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_map_is_one_to_one_and_ordered() -> None:
    assert await collect(map_stream(iter_stream("abc"), str.upper)) == ["A", "B", "C"]


def test_map_passes_pending_through(noop_cx: Context) -> None:
    tx, rx = channel()
    s = map_stream(rx, lambda x: x * 2)
    assert s.poll_next(noop_cx) is PENDING
    tx.send(21)
    assert s.poll_next(noop_cx) == Ready(42)
    tx.close()
    assert s.poll_next(noop_cx) is DONE


@pytest.mark.asyncio
async def test_filter_multiples_of_fifteen() -> None:
    s = filter_stream(iter_stream(range(1, 101)), lambda x: x % 3 == 0 and x % 5 == 0)
    assert await collect(s) == [15, 30, 45, 60, 75, 90]


def test_filter_skips_rejected_items_within_one_poll(noop_cx: Context) -> None:
    """A rejected candidate followed by an available one must not yield PENDING."""
    tx, rx = channel()
    for n in (1, 3, 5, 6):
        tx.send(n)
    s = filter_stream(rx, lambda x: x % 2 == 0)
    assert s.poll_next(noop_cx) == Ready(6)
    assert s.poll_next(noop_cx) is PENDING
    tx.close()
    assert s.poll_next(noop_cx) is DONE


@pytest.mark.asyncio
async def test_mapper_errors_propagate_to_consumer() -> None:
    def explode(x: int) -> int:
        raise KeyError(x)

    with pytest.raises(KeyError):
        await collect(map_stream(iter_stream([1]), explode))


@pytest.mark.asyncio
async def test_order_preserved_through_nested_combinators() -> None:
    source = list(range(50))
    s = take_stream(map_stream(filter_stream(iter_stream(source), lambda x: x % 7 != 0), lambda x: -x), 10)
    expected = [-x for x in source if x % 7 != 0][:10]
    assert await collect(s) == expected


# ═════════════════════════════════════════════════════════════════════════════
# take
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(("n", "size"), [(3, 10), (10, 3), (5, 5)])
async def test_take_yields_min_of_n_and_length(n: int, size: int) -> None:
    assert await collect(take_stream(iter_stream(range(size)), n)) == list(range(min(n, size)))


@pytest.mark.asyncio
async def test_take_zero_never_polls() -> None:
    inner = CountingStream(iter_stream(range(5)))
    assert await collect(take_stream(inner, 0)) == []
    assert inner.polls == 0
    assert inner.closed


def test_take_stops_polling_once_exhausted(noop_cx: Context) -> None:
    inner = CountingStream(iter_stream(range(100)))
    s = take_stream(inner, 2)
    assert s.poll_next(noop_cx) == Ready(0)
    assert s.poll_next(noop_cx) == Ready(1)
    assert inner.closed
    for _ in range(3):
        assert s.poll_next(noop_cx) is DONE
    assert inner.polls == 2
    assert s.remaining == 0


def test_take_releases_channel_registration(noop_cx: Context) -> None:
    tx, rx = channel()
    tx.send("only")
    s = take_stream(rx, 1)
    assert s.poll_next(noop_cx) == Ready("only")
    assert tx.is_closed


@pytest.mark.parametrize("bad", [-1, 1.5, True])
def test_take_rejects_bad_counts(bad: object) -> None:
    with pytest.raises(InvalidArgument):
        take_stream(iter_stream([]), bad)  # type: ignore[arg-type]


# ═════════════════════════════════════════════════════════════════════════════
# Supplementary combinators
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_skip_and_enumerate() -> None:
    assert await collect(skip_stream(iter_stream(range(5)), 3)) == [3, 4]
    assert await collect(enumerate_stream(iter_stream("ab"), start=1)) == [(1, "a"), (2, "b")]


@pytest.mark.asyncio
async def test_chain_drains_in_order_and_closes_finished() -> None:
    first = CountingStream(iter_stream([1, 2]))
    second = CountingStream(iter_stream([3]))
    assert await collect(chain_streams(first, second)) == [1, 2, 3]
    assert first.closed and second.closed


@pytest.mark.asyncio
async def test_stop_after_errors_delivers_limit_then_ends() -> None:
    e = Elapsed(0.1)
    source = CountingStream(iter_stream([Ok(1), Err(e), Ok(2), Err(e), Ok(3), Err(e)]))
    got = await collect(stop_after_errors(source, limit=2))
    assert got == [Ok(1), Err(e), Ok(2), Err(e)]
    assert source.closed
    assert source.polls == 4


@pytest.mark.asyncio
async def test_errors_pass_through_other_combinators() -> None:
    items = [Ok(1), Err(Elapsed(0.5)), Ok(3)]
    s = take_stream(map_stream(iter_stream(items), lambda r: r.map(lambda x: x * 10)), 3)
    assert await collect(s) == [Ok(10), Err(Elapsed(0.5)), Ok(30)]


def test_combinators_accept_plain_protocol_objects(noop_cx: Context) -> None:
    values = iter([1, 2])
    raw = poll_fn(lambda cx: Ready(v) if (v := next(values, None)) is not None else DONE)
    s = map_stream(raw, str)
    assert s.poll_next(noop_cx) == Ready("1")
    assert s.poll_next(noop_cx) == Ready("2")
    assert s.poll_next(noop_cx) is DONE
