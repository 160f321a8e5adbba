"""rlqueue - rate-limited, order-preserving task execution queue."""

from .queue import (
    CancellationError,
    QueueClosedError,
    QueueStats,
    RateLimitedQueue,
    TaskBuffer,
)

__version__ = "1.0.0"

__all__ = [
    "CancellationError",
    "QueueClosedError",
    "QueueStats",
    "RateLimitedQueue",
    "TaskBuffer",
]
