"""Structured logging for the stick-sync command line tools.

Everything is emitted through structlog on top of the standard library
``logging`` module. Entries go to stderr (and optionally a rotating file) so
that the sync summary printed on stdout is never interleaved with them.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

CALLSITE_FIELDS = [
    structlog.processors.CallsiteParameter.FILENAME,
    structlog.processors.CallsiteParameter.LINENO,
    structlog.processors.CallsiteParameter.FUNC_NAME,
]


def _event_processors() -> list[Any]:
    """Processors that enrich each entry before it is rendered."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(parameters=CALLSITE_FIELDS),
    ]


def _renderer(json_logs: bool) -> Any:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def _install_handlers(level: int, log_file: str | None) -> None:
    # force=True drops handlers left by an earlier configure_logging() call
    logging.basicConfig(format="%(message)s", level=level, stream=sys.stderr, force=True)

    if log_file:
        rotating = RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        rotating.setLevel(level)
        logging.root.addHandler(rotating)


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    log_file: str | None = None,
) -> None:
    """
    Set up logging for one sync or health-check run.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown names mean INFO
        json_logs: Render one JSON object per line instead of the console format
        log_file: Also append entries to this file, rotated at 10MB with 5 backups

    Example:
        >>> configure_logging(log_level="DEBUG")
        >>> log = structlog.stdlib.get_logger()
        >>> log.info("sync_event", kind="copy", path="/Volumes/STICK/a.mp3")
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    _install_handlers(level, log_file)

    structlog.configure(
        processors=[*_event_processors(), _renderer(json_logs)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_run_context(source: str, destination: str) -> None:
    """Attach the source and destination roots to every subsequent log entry."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(source=source, destination=destination)
