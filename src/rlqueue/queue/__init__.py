"""
Rate-limited execution queue.

Provides an ordered task buffer and a scheduler that limits how many tasks
may start within a fixed time window.
"""

from .buffer import TaskBuffer
from .models import PendingTask, QueueStats
from .scheduler import CancellationError, QueueClosedError, RateLimitedQueue

__all__ = [
    "CancellationError",
    "PendingTask",
    "QueueClosedError",
    "QueueStats",
    "RateLimitedQueue",
    "TaskBuffer",
]
