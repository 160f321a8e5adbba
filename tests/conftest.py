"""Shared pytest fixtures for rlqueue tests."""

import logging
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry

from rlqueue.config import Config
from rlqueue.metrics import MetricsCollector
from rlqueue.queue import RateLimitedQueue


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove RLQUEUE_* variables so tests see defaults."""
    for key in list(os.environ):
        if key.startswith("RLQUEUE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(scope="function")
def test_config() -> Config:
    """Create a test configuration."""
    return Config(
        max_slots=3,
        window_ms=25,
        queue_name="test",
        log_level="WARNING",  # Quiet logs in tests
        log_format="text",
        metrics_enabled=False,
    )


@pytest.fixture(scope="function")
def registry() -> CollectorRegistry:
    """Create an isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture(scope="function")
def metrics_collector(registry: CollectorRegistry) -> MetricsCollector:
    """Create a metrics collector bound to an isolated registry."""
    return MetricsCollector(registry=registry)


@pytest_asyncio.fixture
async def queue(test_config: Config) -> AsyncGenerator[RateLimitedQueue, None]:
    """Create a queue with capacity 3 and a 25ms window."""
    rlq = test_config.create_queue()
    yield rlq
    rlq.close()


@pytest.fixture
def counter():
    """Zero-argument task that counts its invocations."""

    class Counter:
        def __init__(self):
            self.count = 0

        def __call__(self):
            self.count += 1
            return self.count

    return Counter()


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after setup_logging() runs."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
