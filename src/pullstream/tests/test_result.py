"""Tests for Result and the error types carried inside it.

Validates:
- Functor laws for map
- Extraction and pattern matching
- Elapsed value semantics
- StreamError reports built from exceptions
"""

from __future__ import annotations

from typing import Callable

import pytest

from pullstream import ChannelClosed, Elapsed, Err, ErrorCode, InvalidArgument, Ok, Result, StreamError
from pullstream.foundation.errors import partition_results
from pullstream.foundation.validation import count, duration_seconds


# ═════════════════════════════════════════════════════════════════════════════
# Functor Laws
# ═════════════════════════════════════════════════════════════════════════════


def test_functor_identity() -> None:
    """Functor law: fmap id = id"""
    result: Result[int, str] = Ok(42)
    assert result.map(lambda x: x) == result

    err_result: Result[int, str] = Err("fail")
    assert err_result.map(lambda x: x) == err_result


def test_functor_composition() -> None:
    """Functor law: fmap (f . g) = fmap f . fmap g"""
    f: Callable[[int], int] = lambda x: x + 1
    g: Callable[[int], int] = lambda x: x * 2

    result: Result[int, str] = Ok(5)
    assert result.map(lambda x: f(g(x))) == result.map(g).map(f)


# ═════════════════════════════════════════════════════════════════════════════
# Operational Tests
# ═════════════════════════════════════════════════════════════════════════════


def test_inspection() -> None:
    assert Ok(1).is_ok() and not Ok(1).is_err()
    assert Err("x").is_err()
    assert Ok(1).ok() == 1 and Ok(1).err() is None
    assert Err("x").err() == "x" and Err("x").ok() is None


def test_unwrap_raises_exception_errors() -> None:
    with pytest.raises(Elapsed):
        Err(Elapsed(0.2)).unwrap()
    with pytest.raises(RuntimeError):
        Err("plain").unwrap()
    with pytest.raises(RuntimeError):
        Ok(1).unwrap_err()
    assert Err("plain").unwrap_err() == "plain"


def test_unwrap_or() -> None:
    assert Ok(3).unwrap_or(0) == 3
    assert Err("late").unwrap_or(0) == 0


def test_map_err_only_touches_err() -> None:
    assert Err(1).map_err(lambda e: e + 1) == Err(2)
    assert Ok(1).map_err(lambda e: e + 1) == Ok(1)


def test_match() -> None:
    describe = lambda r: r.match(ok=lambda v: f"got {v}", err=lambda e: f"late {e.timeout}")  # noqa: E731
    assert describe(Ok("a")) == "got a"
    assert describe(Err(Elapsed(0.5))) == "late 0.5"


def test_structural_pattern_matching() -> None:
    match Err(Elapsed(0.1)):
        case Result(Elapsed(timeout=t)):
            assert t == 0.1
        case _:
            pytest.fail("Elapsed not matched")


def test_truthiness_and_equality() -> None:
    assert Ok(0)
    assert not Err(0)
    assert Ok(1) != Err(1)
    assert hash(Ok("a")) == hash(Ok("a"))
    assert repr(Ok("a")) == "Ok('a')"
    assert repr(Err(Elapsed(0.2))) == "Err(Elapsed(0.2))"


def test_partition_results_preserves_order() -> None:
    values, errors = partition_results([Ok(1), Err("a"), Ok(2), Err("b")])
    assert values == [1, 2]
    assert errors == ["a", "b"]


# ═════════════════════════════════════════════════════════════════════════════
# Errors
# ═════════════════════════════════════════════════════════════════════════════


def test_elapsed_equality_by_timeout() -> None:
    assert Elapsed(0.2) == Elapsed(0.2)
    assert Elapsed(0.2) != Elapsed(0.3)
    assert len({Elapsed(1.0), Elapsed(1.0)}) == 1
    assert "0.2s" in str(Elapsed(0.2))


def test_stream_error_from_library_exception() -> None:
    report = ChannelClosed("item").to_error()
    assert report.code == ErrorCode.CHANNEL_CLOSED
    assert report.recoverable
    assert report.severity == "warning"


def test_stream_error_from_foreign_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError as e:
        report = StreamError.from_exception(e, include_trace=True)
    assert report.code == ErrorCode.PRODUCER_FAILED
    assert report.message == "boom"
    assert not report.recoverable
    assert report.severity == "error"
    assert report.details is not None and "ValueError" in report.details


def test_stream_error_is_frozen() -> None:
    report = StreamError(message="x")
    with pytest.raises(Exception):
        report.message = "y"  # type: ignore[misc]


def test_invalid_argument_is_value_error() -> None:
    with pytest.raises(ValueError):
        duration_seconds(-1, name="timeout")
    with pytest.raises(InvalidArgument, match="n:"):
        count(-3, name="n")
    assert count(0) == 0
    assert duration_seconds(2) == 2.0
