"""Producer task spawning and scoping."""

from .task import ProducerScope, TaskHandle, TaskState, spawn

__all__ = ["ProducerScope", "TaskHandle", "TaskState", "spawn"]
