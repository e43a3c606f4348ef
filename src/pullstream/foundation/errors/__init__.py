"""Error handling for pullstream.

- ErrorCode / StreamError: classification and structured reports
- ChannelClosed, Elapsed, StreamBusyError, InvalidArgument: exception types
- Result/Ok/Err: value-level errors carried by timeout_stream items
"""

from .errors import (
    ChannelClosed,
    Elapsed,
    ErrorCode,
    InvalidArgument,
    StreamBusyError,
    StreamError,
    StreamException,
)
from .result import Err, Ok, Result, partition_results

__all__ = [
    "ErrorCode", "StreamError", "StreamException",
    "ChannelClosed", "Elapsed", "StreamBusyError", "InvalidArgument",
    "Result", "Ok", "Err", "partition_results",
]
