"""
Temp file cleanup - removes stale uploads, frames and audio left behind
by interrupted requests.
"""
import shutil
import time
from pathlib import Path
from typing import Optional

from app.core.logging import get_logger

logger = get_logger("cleanup")


def cleanup_temp_files(directory: str, max_age_sec: float = 1800, now: Optional[float] = None) -> int:
    """
    Delete entries in `directory` older than `max_age_sec`.

    Returns the number of entries removed. A missing directory is a no-op.
    """
    root = Path(directory)
    if not root.exists():
        return 0

    now = now if now is not None else time.time()
    removed = 0

    for entry in root.iterdir():
        try:
            age = now - entry.stat().st_mtime
            if age <= max_age_sec:
                continue

            if entry.is_dir():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed += 1
        except OSError as e:
            logger.warning(f"Failed to remove temp entry {entry}: {e}")

    if removed:
        logger.info(f"Cleaned up {removed} stale temp entries in {directory}")
    return removed
