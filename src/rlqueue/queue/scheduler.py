"""
Rate-limited execution queue.

Runs submitted tasks in order as soon as a slot is free. Each execution
occupies one slot for a fixed window measured from its start; when the window
elapses the slot is returned and the next buffered task runs.
"""
import asyncio
import concurrent.futures
import inspect
import logging
import time
from typing import Any, Callable, Optional

from ..metrics import (
    OUTCOME_ABANDONED,
    OUTCOME_CANCELLED,
    OUTCOME_FAILURE,
    OUTCOME_REJECTED,
    OUTCOME_SUCCESS,
    MetricsCollector,
)
from .buffer import TaskBuffer
from .models import PendingTask, QueueStats

logger = logging.getLogger(__name__)


class CancellationError(Exception):
    """Raised through a task's future when the queue closed before it ran."""

    pass


class QueueClosedError(CancellationError):
    """Raised through a task's future when it was submitted after close()."""

    pass


def _check_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


class RateLimitedQueue:
    """
    Execution queue that allows at most ``max_slots`` task executions to
    start within each ``window_ms`` window.

    A slot is taken when a task starts and given back ``window_ms`` later,
    regardless of how long the task takes. Bursts that straddle a window
    boundary can therefore start more than ``max_slots`` tasks within some
    rolling window-length interval.

    All state is confined to one event loop. ``submit`` and ``close`` must be
    called from that loop's thread; other threads use ``submit_threadsafe``.
    """

    def __init__(
        self,
        max_slots: int,
        window_ms: int,
        *,
        name: str = "default",
        loop: Optional[asyncio.AbstractEventLoop] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the queue.

        Args:
            max_slots: Maximum tasks occupying a slot at once
            window_ms: Milliseconds a slot stays occupied after its task starts
            name: Queue name used in logs and metrics labels
            loop: Event loop to schedule releases on (default: the running loop
                at first submission)
            metrics: Optional metrics collector

        Raises:
            TypeError: If max_slots or window_ms is not an int
            ValueError: If max_slots or window_ms is not positive
        """
        self.max_slots = _check_positive_int("max_slots", max_slots)
        self.window_ms = _check_positive_int("window_ms", window_ms)
        self.name = name
        self.metrics = metrics

        self._loop = loop
        self._capacity = max_slots
        self._buffer = TaskBuffer()
        self._timers: set[asyncio.TimerHandle] = set()
        self._inflight: set[asyncio.Future] = set()
        self._closed = False

        # Statistics
        self._tasks_submitted = 0
        self._tasks_executed = 0
        self._tasks_succeeded = 0
        self._tasks_failed = 0
        self._tasks_cancelled = 0
        self._tasks_rejected = 0
        self._tasks_abandoned = 0

        self._update_gauges()

    @property
    def capacity(self) -> int:
        """Number of slots currently available."""
        return self._capacity

    @property
    def pending(self) -> int:
        """Number of tasks waiting for a slot."""
        return self._buffer.size

    @property
    def inflight(self) -> int:
        """Number of awaitables returned by tasks that are still running."""
        return len(self._inflight)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def window_seconds(self) -> float:
        return self.window_ms / 1000.0

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def submit(self, task: Callable[[], Any]) -> asyncio.Future:
        """
        Submit a task for execution.

        The task runs as soon as possible without exceeding the rate limit. If
        a slot is free it runs before this method returns; otherwise it waits
        in order behind earlier submissions.

        Args:
            task: Zero-argument callable. If it returns an awaitable, the
                returned future follows that awaitable.

        Returns:
            Future resolved with the task's return value, or failed with the
            task's exception, CancellationError if the queue closed before the
            task ran, or QueueClosedError if the queue was already closed

        Raises:
            TypeError: If task is not callable
        """
        if not callable(task):
            raise TypeError(f"task must be callable, got {type(task).__name__}")

        loop = self._get_loop()
        future = loop.create_future()

        if self._closed:
            self._tasks_rejected += 1
            if self.metrics:
                self.metrics.record_outcome(self.name, OUTCOME_REJECTED)
            logger.warning(f"Queue {self.name} is closed, rejecting task")
            future.set_exception(QueueClosedError(f"Queue {self.name} is closed"))
            return future

        pending = PendingTask(task=task, future=future)
        self._buffer.push(pending)
        self._tasks_submitted += 1
        if self.metrics:
            self.metrics.record_submitted(self.name)

        logger.debug(
            f"Task submitted to queue {self.name} (pending {self._buffer.size}, "
            f"slots {self._capacity}/{self.max_slots})",
            extra={"queue": self.name, "task_id": pending.task_id},
        )

        # Otherwise a release timer picks it up once a slot frees
        if self._capacity > 0:
            self._execute_next()
        else:
            self._update_gauges()

        return future

    def submit_threadsafe(self, task: Callable[[], Any]) -> concurrent.futures.Future:
        """
        Submit a task from a thread other than the queue's event loop thread.

        Args:
            task: Zero-argument callable

        Returns:
            concurrent.futures.Future mirroring the task's outcome

        Raises:
            RuntimeError: If the queue has no event loop yet
        """
        if self._loop is None:
            raise RuntimeError(
                "Queue is not bound to an event loop; pass loop= or submit from the loop first"
            )

        result: concurrent.futures.Future = concurrent.futures.Future()

        def _copy(future: asyncio.Future) -> None:
            if not result.set_running_or_notify_cancel():
                return
            if future.cancelled():
                result.cancel()
            elif future.exception() is not None:
                result.set_exception(future.exception())
            else:
                result.set_result(future.result())

        def _submit() -> None:
            try:
                future = self.submit(task)
            except Exception as e:
                if result.set_running_or_notify_cancel():
                    result.set_exception(e)
                return
            future.add_done_callback(_copy)

        self._loop.call_soon_threadsafe(_submit)
        return result

    def _execute_next(self) -> None:
        """Run the next buffered task, if any, and arm its slot release."""
        while True:
            pending = self._buffer.pop()
            if pending is None:
                self._update_gauges()
                return  # Nothing to execute
            if not pending.future.cancelled():
                break
            # Abandoned by its caller; skip without spending a slot
            logger.debug(
                f"Skipping task cancelled by caller in queue {self.name}",
                extra={"queue": self.name, **pending.to_dict()},
            )
            self._record_abandoned()

        # Take the slot before running the task so a task that submits to
        # this queue cannot push capacity below zero.
        self._capacity -= 1
        handle: Optional[asyncio.TimerHandle] = None

        def _on_window_elapsed() -> None:
            self._release_slot(handle)

        handle = self._get_loop().call_later(self.window_seconds, _on_window_elapsed)
        self._timers.add(handle)
        self._tasks_executed += 1
        self._update_gauges()

        if self.metrics:
            self.metrics.record_wait(self.name, time.monotonic() - pending.enqueued_at)

        logger.debug(
            f"Executing task in queue {self.name} (slots {self._capacity}/{self.max_slots})",
            extra={"queue": self.name, **pending.to_dict()},
        )

        self._run(pending)

    def _run(self, pending: PendingTask) -> None:
        try:
            result = pending.task()
        except asyncio.CancelledError:
            self._abandon(pending)
            return
        except Exception as e:
            self._fail(pending, e)
            return

        if inspect.isawaitable(result):
            inner = asyncio.ensure_future(result, loop=self._get_loop())
            self._inflight.add(inner)
            inner.add_done_callback(self._inflight.discard)
            inner.add_done_callback(lambda fut: self._settle_awaitable(pending, fut))
            return

        self._resolve(pending, result)

    def _settle_awaitable(self, pending: PendingTask, inner: asyncio.Future) -> None:
        if inner.cancelled():
            self._abandon(pending)
            return
        error = inner.exception()
        if error is not None:
            self._fail(pending, error)
        else:
            self._resolve(pending, inner.result())

    def _resolve(self, pending: PendingTask, result: Any) -> None:
        if pending.future.cancelled():
            self._record_abandoned()
            return
        pending.future.set_result(result)
        self._tasks_succeeded += 1
        if self.metrics:
            self.metrics.record_outcome(self.name, OUTCOME_SUCCESS)

    def _fail(self, pending: PendingTask, error: BaseException) -> None:
        if pending.future.cancelled():
            self._record_abandoned()
            return
        self._tasks_failed += 1
        if self.metrics:
            self.metrics.record_outcome(self.name, OUTCOME_FAILURE)
        logger.error(
            f"Task in queue {self.name} failed: {error}",
            extra={"queue": self.name, "task_id": pending.task_id},
            exc_info=error,
        )
        pending.future.set_exception(error)

    def _abandon(self, pending: PendingTask) -> None:
        """Cancel the future of a task that was cancelled while running."""
        logger.debug(
            f"Task in queue {self.name} was cancelled while running",
            extra={"queue": self.name, "task_id": pending.task_id},
        )
        pending.future.cancel()
        self._record_abandoned()

    def _record_abandoned(self) -> None:
        self._tasks_abandoned += 1
        if self.metrics:
            self.metrics.record_outcome(self.name, OUTCOME_ABANDONED)

    def _release_slot(self, handle: asyncio.TimerHandle) -> None:
        """Timer callback returning one slot and draining the buffer."""
        if self._closed:
            return

        self._capacity += 1
        self._timers.discard(handle)
        logger.debug(
            f"Slot released in queue {self.name} (slots {self._capacity}/{self.max_slots})",
            extra={"queue": self.name},
        )
        self._execute_next()

    def close(self) -> None:
        """
        Close the queue.

        Cancels all pending slot releases and fails every task that has not
        started with CancellationError. Tasks already running are unaffected.
        Calling close() again has no effect.
        """
        if self._closed:
            return

        self._closed = True
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()

        cancelled = 0
        while self._buffer:
            pending = self._buffer.pop()
            if pending.future.done():
                self._record_abandoned()
                continue
            pending.future.set_exception(
                CancellationError("Queue closed, task has been cancelled")
            )
            cancelled += 1

        self._tasks_cancelled += cancelled
        if self.metrics and cancelled:
            self.metrics.record_outcome(self.name, OUTCOME_CANCELLED, count=cancelled)
        self._update_gauges()

        logger.info(
            f"Queue {self.name} closed, cancelled {cancelled} pending task(s)",
            extra={"queue": self.name},
        )

    async def __aenter__(self) -> "RateLimitedQueue":
        self._get_loop()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _update_gauges(self) -> None:
        if self.metrics:
            self.metrics.update_queue_state(self.name, self._capacity, self._buffer.size)

    def get_stats(self) -> QueueStats:
        """
        Get current queue statistics.

        Returns:
            Queue statistics
        """
        return QueueStats(
            max_slots=self.max_slots,
            available_slots=self._capacity,
            pending=self._buffer.size,
            outstanding_timers=len(self._timers),
            inflight=len(self._inflight),
            window_ms=self.window_ms,
            closed=self._closed,
            tasks_submitted_total=self._tasks_submitted,
            tasks_executed_total=self._tasks_executed,
            tasks_succeeded_total=self._tasks_succeeded,
            tasks_failed_total=self._tasks_failed,
            tasks_cancelled_total=self._tasks_cancelled,
            tasks_rejected_total=self._tasks_rejected,
            tasks_abandoned_total=self._tasks_abandoned,
        )

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"<RateLimitedQueue {self.name} {state} slots={self._capacity}/{self.max_slots} "
            f"pending={self._buffer.size} window_ms={self.window_ms}>"
        )
