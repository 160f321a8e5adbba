"""Command-line interface for rlqueue."""

import asyncio
import json
import logging
import time
from typing import Optional

import click

from .config import Config
from .metrics import get_metrics, start_metrics_server
from .queue import CancellationError
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _queue_options(func):
    """Options shared by commands that build a queue."""
    options = [
        click.option(
            "--max-slots",
            type=int,
            help="Maximum tasks started per window (default: 20)",
        ),
        click.option(
            "--window-ms",
            type=int,
            help="Window length in milliseconds (default: 31000)",
        ),
        click.option(
            "--queue-name",
            type=str,
            help="Queue name used in logs and metrics (default: default)",
        ),
        click.option(
            "--log-level",
            type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
            help="Logging level (default: INFO)",
        ),
        click.option(
            "--log-format",
            type=click.Choice(["text", "json"], case_sensitive=False),
            help="Log format (default: text)",
        ),
        click.option(
            "--metrics/--no-metrics",
            default=None,
            help="Enable/disable Prometheus metrics (default: disabled)",
        ),
        click.option(
            "--metrics-port",
            type=int,
            help="Prometheus metrics port (default: 9100)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config(kwargs: dict) -> Config:
    # Filter out None values (unspecified options)
    cli_args = {k: v for k, v in kwargs.items() if v is not None}
    try:
        return Config.from_args_and_env(cli_args)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
def cli():
    """rlqueue - Rate-limited, order-preserving task execution queue."""
    pass


@cli.command()
@_queue_options
def config(**kwargs):
    """Show the resolved configuration."""
    click.echo(_load_config(kwargs).display())


async def _run_demo(config: Config, tasks: int, fail_every: Optional[int]) -> dict:
    metrics = None
    if config.metrics_enabled:
        metrics = get_metrics()
        start_metrics_server(config.metrics_port)

    started = time.monotonic()
    starts: dict[int, float] = {}

    def make_task(index: int):
        def task():
            starts[index] = time.monotonic() - started
            if fail_every and index % fail_every == 0:
                raise RuntimeError(f"task {index} failed")
            return index
        return task

    async with config.create_queue(metrics=metrics) as queue:
        futures = [queue.submit(make_task(i)) for i in range(1, tasks + 1)]
        logger.info(
            f"Submitted {tasks} tasks ({queue.pending} waiting for a slot)"
        )
        outcomes = await asyncio.gather(*futures, return_exceptions=True)

        for index, outcome in enumerate(outcomes, start=1):
            if isinstance(outcome, CancellationError):
                status = "cancelled"
            elif isinstance(outcome, Exception):
                status = f"failed: {outcome}"
            else:
                status = f"ok: {outcome}"
            click.echo(f"task {index:>4}  start +{starts.get(index, 0.0):8.3f}s  {status}")

    return queue.get_stats().to_dict()


@cli.command()
@_queue_options
@click.option(
    "--tasks",
    type=int,
    default=10,
    show_default=True,
    help="Number of tasks to submit",
)
@click.option(
    "--fail-every",
    type=int,
    default=None,
    help="Make every Nth task raise an error",
)
def demo(tasks, fail_every, **kwargs):
    """Submit a burst of tasks and report when each one ran."""
    config = _load_config(kwargs)
    setup_logging(level=config.log_level, format_type=config.log_format)
    logger.info(f"\n{config.display()}")

    try:
        stats = asyncio.run(_run_demo(config, tasks, fail_every))
    except (TypeError, ValueError) as e:
        raise click.BadParameter(str(e))

    click.echo(json.dumps(stats, indent=2))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
