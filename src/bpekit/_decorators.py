"""Reusable decorators for construction utilities."""

import functools
import logging
import time
from typing import Callable

log = logging.getLogger(__name__)


def measure_time(func: Callable) -> Callable:
    """Log execution time for the wrapped callable."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        """Call ``func`` and always log elapsed time."""
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        # log even when construction fails
        finally:
            elapsed = time.perf_counter() - start
            log.debug(f"{func.__name__} finished in {elapsed * 1000:.1f} ms")

    return wrapper
