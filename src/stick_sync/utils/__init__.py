"""Shared utilities for configuration, logging, and error handling"""

from stick_sync.utils.config_loader import ConfigLoader, ConfigurationError
from stick_sync.utils.logging_config import bind_run_context, configure_logging
from stick_sync.utils.retry import backoff_delays, exponential_backoff_retry

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "backoff_delays",
    "bind_run_context",
    "configure_logging",
    "exponential_backoff_retry",
]
