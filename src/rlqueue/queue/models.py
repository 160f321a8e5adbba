"""
Data models for the rate-limited queue.
"""
import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass(frozen=True)
class PendingTask:
    """A submitted task paired with the future that reports its outcome."""

    task: Callable[[], Any]
    future: asyncio.Future
    task_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    enqueued_at: float = field(default_factory=time.monotonic)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "task_id": self.task_id,
            "task": getattr(self.task, "__qualname__", repr(self.task)),
            "done": self.future.done(),
        }


@dataclass
class QueueStats:
    """Point-in-time statistics about a queue."""

    max_slots: int
    available_slots: int
    pending: int
    outstanding_timers: int
    inflight: int
    window_ms: int
    closed: bool
    tasks_submitted_total: int
    tasks_executed_total: int
    tasks_succeeded_total: int
    tasks_failed_total: int
    tasks_cancelled_total: int
    tasks_rejected_total: int
    tasks_abandoned_total: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "max_slots": self.max_slots,
            "available_slots": self.available_slots,
            "pending": self.pending,
            "outstanding_timers": self.outstanding_timers,
            "inflight": self.inflight,
            "window_ms": self.window_ms,
            "closed": self.closed,
            "tasks_submitted_total": self.tasks_submitted_total,
            "tasks_executed_total": self.tasks_executed_total,
            "tasks_succeeded_total": self.tasks_succeeded_total,
            "tasks_failed_total": self.tasks_failed_total,
            "tasks_cancelled_total": self.tasks_cancelled_total,
            "tasks_rejected_total": self.tasks_rejected_total,
            "tasks_abandoned_total": self.tasks_abandoned_total,
        }
