"""
Timing helpers: operation timing and media position display.
"""
import time
from contextlib import contextmanager
from app.core.logging import get_logger

logger = get_logger("timing")


@contextmanager
def timer(operation_name: str):
    """Context manager for timing operations."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        logger.info(f"{operation_name} took {duration:.2f}s")


def format_timestamp(seconds: float) -> str:
    """
    Format a media position for display.

    Under a minute: "7.25s". From a minute on: "1:07.25".
    """
    total = int(round(max(0.0, float(seconds)) * 100))
    mins = total // 6000
    secs = (total // 100) % 60
    hundredths = total % 100

    if mins > 0:
        return f"{mins}:{secs:02d}.{hundredths:02d}"
    return f"{secs}.{hundredths:02d}s"


def format_seconds(seconds: float) -> str:
    """Display form for durations: 5 -> "5s", 2.5 -> "2.5s"."""
    value = round(float(seconds), 2)
    if value == int(value):
        return f"{int(value)}s"
    return f"{value}s"
