"""Pull-based async streams and combinators.

- Contract: Stream, poll_next, PENDING / Ready / DONE, Context, Waker
- Driver: next_item, iterate, collect
- Sources: iter_stream, empty_stream, interval_stream, producer_stream, channel
- Transforms: map_stream, filter_stream, enumerate_stream
- Bounding: take_stream, skip_stream, stop_after_errors
- Timing: timeout_stream, throttle_stream
- Fan-in: merge_streams, chain_streams
"""

from .channel import Receiver, ReceiverStream, Sender, channel
from .combinators import (
    chain_streams,
    enumerate_stream,
    filter_stream,
    map_stream,
    skip_stream,
    stop_after_errors,
    take_stream,
)
from .core import (
    DONE,
    PENDING,
    BoxStream,
    Context,
    Poll,
    Ready,
    Stream,
    StreamBase,
    Waker,
    close_stream,
    collect,
    iterate,
    next_item,
    poll_fn,
)
from .merge import Merge, merge_streams
from .sources import empty_stream, interval_stream, iter_stream, producer_stream
from .timing import Throttle, Timeout, TimerSlot, throttle_stream, timeout_stream

__all__ = [
    # Contract
    "Stream", "StreamBase", "BoxStream", "Poll", "Ready", "PENDING", "DONE", "Context", "Waker",
    "poll_fn", "close_stream",
    # Driver
    "next_item", "iterate", "collect",
    # Sources
    "iter_stream", "empty_stream", "interval_stream", "producer_stream",
    "channel", "Sender", "Receiver", "ReceiverStream",
    # Combinators
    "map_stream", "filter_stream", "take_stream", "skip_stream", "enumerate_stream",
    "chain_streams", "stop_after_errors",
    # Timing
    "timeout_stream", "throttle_stream", "Timeout", "Throttle", "TimerSlot",
    # Fan-in
    "merge_streams", "Merge",
]
