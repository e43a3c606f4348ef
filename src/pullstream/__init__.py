"""pullstream - pull-based async streams and combinators for asyncio.

A stream is anything with `poll_next(cx)`; combinators wrap streams in other
streams, and a single driver (`next_item` / `async for`) pulls items through
the whole chain, suspending only when the innermost source has nothing ready.

Quick Start:
    >>> from pullstream import iter_stream, filter_stream, collect
    >>> s = filter_stream(iter_stream(range(1, 101)), lambda x: x % 15 == 0)
    >>> await collect(s)
    [15, 30, 45, 60, 75, 90]

Channels and timing:
    >>> from pullstream import producer_stream, timeout_stream
    >>> async def letters(tx):
    ...     for c in "abcdefghij":
    ...         tx.send(c)
    ...         await asyncio.sleep(0.1)
    >>> async for result in timeout_stream(producer_stream(letters), 0.2):
    ...     print(result)  # Ok('a'), Ok('b'), ... or Err(Elapsed(0.2))

Fan-in with bounds:
    >>> from pullstream import merge_streams, throttle_stream, interval_stream, take_stream
    >>> ticks = throttle_stream(interval_stream(0.001), 0.1)
    >>> merged = take_stream(merge_streams(producer_stream(letters), ticks), 20)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
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
)

# Settings
from .foundation.config import PullstreamSettings, get_settings

# Runtime
from .runtime import ProducerScope, TaskHandle, configure_logging, get_logger, spawn

# Streams
from .streams import (
    DONE,
    PENDING,
    BoxStream,
    Context,
    Poll,
    Ready,
    Receiver,
    ReceiverStream,
    Sender,
    Stream,
    StreamBase,
    Waker,
    chain_streams,
    channel,
    close_stream,
    collect,
    empty_stream,
    enumerate_stream,
    filter_stream,
    interval_stream,
    iter_stream,
    iterate,
    map_stream,
    merge_streams,
    next_item,
    poll_fn,
    producer_stream,
    skip_stream,
    stop_after_errors,
    take_stream,
    throttle_stream,
    timeout_stream,
)

__all__ = [
    "__version__",
    # Errors
    "ErrorCode", "StreamError", "StreamException", "ChannelClosed", "Elapsed",
    "StreamBusyError", "InvalidArgument", "Result", "Ok", "Err",
    # Settings
    "PullstreamSettings", "get_settings",
    # Runtime
    "spawn", "ProducerScope", "TaskHandle", "configure_logging", "get_logger",
    # Contract & driver
    "Stream", "StreamBase", "BoxStream", "Poll", "Ready", "PENDING", "DONE", "Context", "Waker",
    "poll_fn", "close_stream", "next_item", "iterate", "collect",
    # Sources
    "iter_stream", "empty_stream", "interval_stream", "producer_stream",
    "channel", "Sender", "Receiver", "ReceiverStream",
    # Combinators
    "map_stream", "filter_stream", "take_stream", "skip_stream", "enumerate_stream",
    "chain_streams", "stop_after_errors", "timeout_stream", "throttle_stream", "merge_streams",
]
