"""Runtime services: producer tasks and structured logging."""

from .concurrency import ProducerScope, TaskHandle, TaskState, spawn
from .observability import configure_logging, get_logger, log_context

__all__ = [
    "ProducerScope", "TaskHandle", "TaskState", "spawn",
    "configure_logging", "get_logger", "log_context",
]
