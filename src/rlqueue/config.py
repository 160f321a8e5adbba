"""Configuration management with CLI args, environment variables, and defaults."""

import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .metrics import MetricsCollector
from .queue import RateLimitedQueue

ENV_PREFIX = "RLQUEUE_"


class EnvVars:
    """Centralized environment variable names for consistent access."""

    # === Queue ===
    MAX_SLOTS = f"{ENV_PREFIX}MAX_SLOTS"
    WINDOW_MS = f"{ENV_PREFIX}WINDOW_MS"
    QUEUE_NAME = f"{ENV_PREFIX}QUEUE_NAME"

    # === Logging ===
    LOG_LEVEL = f"{ENV_PREFIX}LOG_LEVEL"
    LOG_FORMAT = f"{ENV_PREFIX}LOG_FORMAT"

    # === Metrics ===
    METRICS_ENABLED = f"{ENV_PREFIX}METRICS_ENABLED"
    METRICS_PORT = f"{ENV_PREFIX}METRICS_PORT"


def get_value(
    cli_arg: Any,
    env_var: str,
    default: Any,
    type_converter: Callable[[str], Any] = str,
) -> Any:
    """
    Resolve a setting with priority: CLI > Env > Default.

    Raises:
        ValueError: If the environment value cannot be converted
    """
    if cli_arg is not None:
        return cli_arg
    env_value = os.getenv(env_var)
    if env_value is not None:
        if type_converter == bool:
            return env_value.lower() in ("true", "1", "yes", "on")
        try:
            return type_converter(env_value)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {env_value!r}") from e
    return default


@dataclass
class Config:
    """Application configuration."""

    # === Queue ===
    # Chat services commonly allow 20 messages per 30s; one extra second of margin
    max_slots: int = 20
    window_ms: int = 31000
    queue_name: str = "default"

    # === Logging ===
    log_level: str = "INFO"
    log_format: str = "text"  # json|text

    # === Metrics ===
    metrics_enabled: bool = False
    metrics_port: int = 9100

    @classmethod
    def from_args_and_env(cls, cli_args: dict) -> "Config":
        """
        Load configuration from CLI arguments, environment variables, and defaults.

        Priority: CLI args > Environment variables > Defaults

        Args:
            cli_args: Options given on the command line; missing keys fall
                back to the environment, then to defaults

        Returns:
            Config instance

        Raises:
            ValueError: If an environment variable holds an invalid value
        """
        config = cls()

        config.max_slots = get_value(
            cli_args.get("max_slots"), EnvVars.MAX_SLOTS, config.max_slots, int
        )
        config.window_ms = get_value(
            cli_args.get("window_ms"), EnvVars.WINDOW_MS, config.window_ms, int
        )
        config.queue_name = get_value(
            cli_args.get("queue_name"), EnvVars.QUEUE_NAME, config.queue_name
        )

        config.log_level = get_value(
            cli_args.get("log_level"), EnvVars.LOG_LEVEL, config.log_level
        )
        config.log_format = get_value(
            cli_args.get("log_format"), EnvVars.LOG_FORMAT, config.log_format
        )

        config.metrics_enabled = get_value(
            cli_args.get("metrics"), EnvVars.METRICS_ENABLED, config.metrics_enabled, bool
        )
        config.metrics_port = get_value(
            cli_args.get("metrics_port"), EnvVars.METRICS_PORT, config.metrics_port, int
        )

        return config

    def create_queue(self, metrics: Optional[MetricsCollector] = None) -> RateLimitedQueue:
        """
        Build a queue from this configuration.

        Args:
            metrics: Optional metrics collector to attach

        Returns:
            New RateLimitedQueue bound lazily to the running event loop
        """
        return RateLimitedQueue(
            max_slots=self.max_slots,
            window_ms=self.window_ms,
            name=self.queue_name,
            metrics=metrics,
        )

    def display(self) -> str:
        """
        Display configuration in human-readable format.

        Returns:
            Formatted configuration string
        """
        lines = [
            "Configuration:",
            "  Queue:",
            f"    Name: {self.queue_name}",
            f"    Max Slots: {self.max_slots}",
            f"    Window: {self.window_ms}ms",
            "  Logging:",
            f"    Level: {self.log_level}",
            f"    Format: {self.log_format}",
            "  Metrics:",
            f"    Enabled: {'Yes' if self.metrics_enabled else 'No'}",
        ]
        if self.metrics_enabled:
            lines.append(f"    Port: {self.metrics_port}")

        return "\n".join(lines)
