"""Unit tests for queue data models."""

import asyncio

import pytest

from rlqueue.queue.models import PendingTask, QueueStats


@pytest.mark.asyncio
class TestPendingTask:
    """Test PendingTask dataclass."""

    async def test_create_pending_task(self):
        """Test defaults are generated on creation."""
        future = asyncio.get_running_loop().create_future()

        def send_greeting():
            return "hi"

        pending = PendingTask(task=send_greeting, future=future)
        assert pending.task is send_greeting
        assert pending.future is future
        assert pending.task_id is not None
        assert pending.enqueued_at > 0

    async def test_task_ids_are_unique(self):
        """Test each pending task gets its own id."""
        loop = asyncio.get_running_loop()
        first = PendingTask(task=lambda: None, future=loop.create_future())
        second = PendingTask(task=lambda: None, future=loop.create_future())
        assert first.task_id != second.task_id

    async def test_pairing_is_immutable(self):
        """Test the task/future pairing cannot be reassigned."""
        loop = asyncio.get_running_loop()
        pending = PendingTask(task=lambda: None, future=loop.create_future())
        with pytest.raises(AttributeError):
            pending.future = loop.create_future()

    async def test_to_dict(self):
        """Test dictionary form used for logging."""
        future = asyncio.get_running_loop().create_future()

        def send_greeting():
            return "hi"

        data = PendingTask(task=send_greeting, future=future, task_id="abc").to_dict()
        assert data["task_id"] == "abc"
        assert data["task"].endswith("send_greeting")
        assert data["done"] is False


class TestQueueStats:
    """Test QueueStats dataclass."""

    def test_to_dict(self):
        """Test converting stats to a dictionary."""
        stats = QueueStats(
            max_slots=20,
            available_slots=5,
            pending=3,
            outstanding_timers=15,
            inflight=2,
            window_ms=31000,
            closed=False,
            tasks_submitted_total=18,
            tasks_executed_total=15,
            tasks_succeeded_total=12,
            tasks_failed_total=1,
            tasks_cancelled_total=0,
            tasks_rejected_total=0,
            tasks_abandoned_total=2,
        )
        result = stats.to_dict()
        assert result["max_slots"] == 20
        assert result["available_slots"] == 5
        assert result["pending"] == 3
        assert result["outstanding_timers"] == 15
        assert result["window_ms"] == 31000
        assert result["closed"] is False
        assert result["tasks_submitted_total"] == 18
        assert result["tasks_failed_total"] == 1
        assert result["inflight"] == 2
        assert result["tasks_succeeded_total"] == 12
        assert result["tasks_abandoned_total"] == 2
