"""Result sum type used for fallible stream items.

timeout_stream turns a Stream[T] into a Stream[Result[T, Elapsed]]; every other
combinator passes Result items through untouched, and stop_after_errors is the
one that looks inside them.

`Ok` and `Err` are the two concrete variants, so both isinstance checks and
structural pattern matching work:

    >>> match item:
    ...     case Ok(value):
    ...         handle(value)
    ...     case Err(Elapsed(timeout=t)):
    ...         log.warning("late", timeout=t)
"""

from __future__ import annotations

from typing import Callable, Generic, NoReturn, TypeVar

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Common interface of Ok and Err. Not instantiated directly."""

    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value: object) -> None:
        self.value = value

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def ok(self) -> T | None:
        """The success value, or None for Err."""
        return self.value if isinstance(self, Ok) else None  # type: ignore[return-value]

    def err(self) -> E | None:
        """The error value, or None for Ok."""
        return self.value if isinstance(self, Err) else None  # type: ignore[return-value]

    def unwrap(self) -> T:
        raise NotImplementedError

    def unwrap_err(self) -> E:
        raise NotImplementedError

    def unwrap_or(self, default: T) -> T:
        return self.value if isinstance(self, Ok) else default  # type: ignore[return-value]

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        raise NotImplementedError

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        raise NotImplementedError

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Call `ok` or `err` with the contained value."""
        return ok(self.value) if isinstance(self, Ok) else err(self.value)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return type(self) is type(other) and self.value == other.value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Ok(Result[T, E]):
    """Success variant.

    >>> Ok(3).map(lambda x: x + 1)
    Ok(4)
    """

    __slots__ = ()

    def unwrap(self) -> T:
        return self.value  # type: ignore[return-value]

    def unwrap_err(self) -> NoReturn:
        raise RuntimeError(f"unwrap_err() on {self!r}")

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        return Ok(f(self.value))  # type: ignore[arg-type]

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        return Ok(self.value)

    def __bool__(self) -> bool:
        return True


class Err(Result[T, E]):
    """Failure variant.

    >>> Err("late").unwrap_or(0)
    0
    """

    __slots__ = ()

    def unwrap(self) -> NoReturn:
        """Raise the contained error when it is an exception, RuntimeError otherwise."""
        if isinstance(self.value, BaseException):
            raise self.value
        raise RuntimeError(f"unwrap() on {self!r}")

    def unwrap_err(self) -> E:
        return self.value  # type: ignore[return-value]

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        return Err(self.value)

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        return Err(f(self.value))  # type: ignore[arg-type]

    def __bool__(self) -> bool:
        return False


def partition_results(results: list[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Split collected results into (ok values, err values), preserving order."""
    oks = [r.value for r in results if isinstance(r, Ok)]
    errs = [r.value for r in results if isinstance(r, Err)]
    return oks, errs  # type: ignore[return-value]
