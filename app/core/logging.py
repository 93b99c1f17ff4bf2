"""
Logging configuration for ClipGuard service.

All service loggers live under "clipguard"; get_logger("stages.nsfw")
returns "clipguard.stages.nsfw".
"""
import logging
import sys
from typing import Optional

from app.core.config import settings

# Libraries that log every download/request at INFO
NOISY_LOGGERS = ("transformers", "urllib3", "httpx", "multipart", "python_multipart")


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure stdout logging once for the process."""
    log_level = _level(level)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    root = logging.getLogger("clipguard")
    root.setLevel(log_level)
    return root


logger = setup_logging(settings.log_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Service logger, or a named child of it."""
    if name:
        return logging.getLogger(f"clipguard.{name}")
    return logger
