"""Prometheus metrics collector."""

import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

OUTCOME_SUCCESS = "success"
OUTCOME_FAILURE = "failure"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_REJECTED = "rejected"
# Future cancelled by its caller, or the task itself was cancelled
OUTCOME_ABANDONED = "abandoned"


class MetricsCollector:
    """Collects and exposes Prometheus metrics for rate-limited queues."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics.

        Args:
            registry: Registry to register metrics with (default: global registry)
        """
        if registry is None:
            registry = REGISTRY
        self.registry = registry

        # Task counters
        self.tasks_submitted_total = Counter(
            "rlqueue_tasks_submitted_total",
            "Total tasks submitted",
            ["queue"],
            registry=registry,
        )

        self.tasks_total = Counter(
            "rlqueue_tasks_total",
            "Total tasks finished by outcome",
            ["queue", "outcome"],
            registry=registry,
        )

        # Capacity
        self.available_slots = Gauge(
            "rlqueue_available_slots",
            "Execution slots currently available",
            ["queue"],
            registry=registry,
        )

        self.pending_tasks = Gauge(
            "rlqueue_pending_tasks",
            "Tasks waiting for a free slot",
            ["queue"],
            registry=registry,
        )

        # Latency
        self.task_wait_seconds = Histogram(
            "rlqueue_task_wait_seconds",
            "Time from submission to execution start in seconds",
            ["queue"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

    def record_submitted(self, queue: str) -> None:
        """Record a task submission."""
        self.tasks_submitted_total.labels(queue=queue).inc()

    def record_outcome(self, queue: str, outcome: str, count: int = 1) -> None:
        """Record how one or more tasks finished."""
        self.tasks_total.labels(queue=queue, outcome=outcome).inc(count)

    def record_wait(self, queue: str, seconds: float) -> None:
        """Record how long a task waited for a slot."""
        self.task_wait_seconds.labels(queue=queue).observe(seconds)

    def update_queue_state(self, queue: str, available_slots: int, pending: int) -> None:
        """Update capacity gauges."""
        self.available_slots.labels(queue=queue).set(available_slots)
        self.pending_tasks.labels(queue=queue).set(pending)


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def start_metrics_server(port: int, addr: str = "0.0.0.0") -> None:
    """Expose the global registry over HTTP."""
    logger.info(f"Starting metrics server on {addr}:{port}")
    start_http_server(port, addr=addr)
