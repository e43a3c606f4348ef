"""Stream error codes and exception hierarchy.

Two error kinds leave the stream machinery:
- ChannelClosed: raised at the producer by Sender.send once the receiver is gone
- Elapsed: a timeout_stream deadline passed; delivered to the consumer as Err(Elapsed)

StreamError is the structured (pydantic) report used when logging failures.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from typing import Annotated, ClassVar, Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class ErrorCode(StrEnum):
    """Machine-readable error classification."""
    CHANNEL_CLOSED = "CHANNEL_CLOSED"
    ELAPSED = "ELAPSED"
    STREAM_BUSY = "STREAM_BUSY"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    PRODUCER_FAILED = "PRODUCER_FAILED"
    UNKNOWN = "UNKNOWN"


_RECOVERABLE_CODES: frozenset[ErrorCode] = frozenset({ErrorCode.CHANNEL_CLOSED, ErrorCode.ELAPSED})


class StreamError(BaseModel):
    """Structured description of a stream-side failure.

    Attributes:
        code: Machine-readable error code
        message: Human-readable message
        recoverable: Whether the stream (or producer) can carry on
        details: Optional traceback text
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, validate_default=True)

    code: ErrorCode = Field(default=ErrorCode.UNKNOWN, description="Error classification")
    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    recoverable: bool = Field(default=False, description="Whether processing can continue")
    details: str | None = Field(default=None, description="Optional traceback")

    @computed_field
    @property
    def severity(self) -> str:
        """Log level hint for this error."""
        return "warning" if self.recoverable else "error"

    @classmethod
    def from_exception(cls, exc: BaseException, *, include_trace: bool = False) -> Self:
        """Build a report from any exception, using its code when it is a StreamException."""
        code = exc.code if isinstance(exc, StreamException) else ErrorCode.PRODUCER_FAILED
        trace = "".join(traceback.format_exception(exc)) if include_trace else None
        return cls(
            code=code,
            message=str(exc) or type(exc).__name__,
            recoverable=code in _RECOVERABLE_CODES,
            details=trace,
        )


class StreamException(Exception):
    """Base for all pullstream exceptions."""

    code: ClassVar[ErrorCode] = ErrorCode.UNKNOWN

    def to_error(self) -> StreamError:
        return StreamError.from_exception(self)


class ChannelClosed(StreamException, Generic[T]):
    """Send failed because the receiving side of the channel is closed.

    The unsent item is kept on `item` so the producer can recover it.
    """

    __slots__ = ("item",)
    code = ErrorCode.CHANNEL_CLOSED

    def __init__(self, item: T, message: str = "channel closed: receiver is gone") -> None:
        self.item = item
        super().__init__(message)


class Elapsed(StreamException):
    """A per-item deadline passed before the next item arrived.

    Delivered as a value (Err(Elapsed)) rather than raised. Two instances compare
    equal when their timeouts are equal.
    """

    __slots__ = ("timeout",)
    code = ErrorCode.ELAPSED

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"deadline of {timeout:g}s elapsed")

    def __eq__(self, other: object) -> bool:
        return self.timeout == other.timeout if isinstance(other, Elapsed) else NotImplemented

    def __hash__(self) -> int:
        return hash((Elapsed, self.timeout))

    def __repr__(self) -> str:
        return f"Elapsed({self.timeout!r})"


class StreamBusyError(StreamException, RuntimeError):
    """A second consumer tried to drive a stream that already has one."""

    code = ErrorCode.STREAM_BUSY


class InvalidArgument(StreamException, ValueError):
    """A combinator argument failed validation."""

    code = ErrorCode.INVALID_ARGUMENT
