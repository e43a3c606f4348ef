"""Foundation layer: errors, configuration, argument validation."""

from .config import PullstreamSettings, clear_settings_cache, get_settings
from .errors import (
    ChannelClosed,
    Elapsed,
    Err,
    ErrorCode,
    InvalidArgument,
    Ok,
    Result,
    StreamBusyError,
    StreamError,
    StreamException,
    partition_results,
)

__all__ = [
    "PullstreamSettings", "get_settings", "clear_settings_cache",
    "ErrorCode", "StreamError", "StreamException",
    "ChannelClosed", "Elapsed", "StreamBusyError", "InvalidArgument",
    "Result", "Ok", "Err", "partition_results",
]
