"""Re-run a whole sync after an I/O error, waiting longer each time."""

import time
from functools import wraps
from typing import Callable, Iterator, Tuple, Type

import structlog

from stick_sync.errors import SyncIOError

log = structlog.stdlib.get_logger()


def backoff_delays(base_delay: float, max_delay: float, count: int) -> Iterator[float]:
    """Yield ``count`` waits that double from ``base_delay`` up to ``max_delay``."""
    delay = base_delay
    for _ in range(count):
        yield min(delay, max_delay)
        delay *= 2


def exponential_backoff_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (SyncIOError,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """
    Wrap a sync entry point so a stick that drops out briefly does not end the run.

    An interrupted attempt leaves its staged entries in the ``.tmp`` folders;
    the next attempt restores them before copying anything, so repeating the
    call is enough to resume.

    Args:
        max_retries: Attempts made after the first one fails
        base_delay: Wait before the first retry, in seconds
        max_delay: Upper bound for any single wait
        exceptions: Errors worth another attempt; anything else propagates at once
        sleep: Called with each wait (``time.sleep`` unless a test injects one)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            waits = backoff_delays(base_delay, max_delay, max_retries)
            attempt = 0
            while True:
                attempt += 1
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    delay = next(waits, None)
                    if delay is None:
                        log.error(
                            "max_retries_reached",
                            function=func.__name__,
                            max_retries=max_retries,
                            error=str(exc),
                        )
                        raise
                    log.warning(
                        "retrying_after_error",
                        function=func.__name__,
                        attempt=attempt,
                        max_retries=max_retries,
                        delay_seconds=delay,
                        error=str(exc),
                    )
                    sleep(delay)

        return wrapper

    return decorator
