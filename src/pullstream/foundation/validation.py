"""Argument validation for combinator constructors.

Durations accept seconds (int/float) or timedelta; counts must be non-negative
ints. Pydantic ValidationErrors are re-raised as InvalidArgument so callers see
a single exception type.
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import NonNegativeInt, PositiveFloat, TypeAdapter, ValidationError

from .errors import InvalidArgument

Duration = float | timedelta

_DURATION: TypeAdapter[float] = TypeAdapter(PositiveFloat)
_COUNT: TypeAdapter[int] = TypeAdapter(NonNegativeInt)


def _first_error(e: ValidationError) -> str:
    errs = e.errors()
    return errs[0]["msg"] if errs else str(e)


def duration_seconds(value: Duration, *, name: str = "duration") -> float:
    """Validate a positive duration and return it in seconds."""
    raw = value.total_seconds() if isinstance(value, timedelta) else value
    try:
        return _DURATION.validate_python(raw, strict=False)
    except ValidationError as e:
        raise InvalidArgument(f"{name}: {_first_error(e)} (got {value!r})") from e


def count(value: int, *, name: str = "count") -> int:
    """Validate a non-negative integer count."""
    if isinstance(value, bool):
        raise InvalidArgument(f"{name}: expected an integer (got {value!r})")
    try:
        return _COUNT.validate_python(value, strict=True)
    except ValidationError as e:
        raise InvalidArgument(f"{name}: {_first_error(e)} (got {value!r})") from e
