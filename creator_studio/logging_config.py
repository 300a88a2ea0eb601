"""Centralized logging configuration for Creator Studio.

Usage:
    from creator_studio.logging_config import setup_logging
    setup_logging()  # Call once at startup

    # Then in any module:
    import logging
    logger = logging.getLogger(__name__)
"""

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_CONFIGURED = False

LOGGER_NAME = "creator_studio"


def _level_from_env(default: int) -> int:
    """Read the level name from CREATOR_STUDIO_LOG_LEVEL, if set and valid."""
    name = os.getenv("CREATOR_STUDIO_LOG_LEVEL", "").strip().upper()
    level = getattr(logging, name, None) if name else None
    return level if isinstance(level, int) else default


def setup_logging(
    level: int = logging.INFO,
    log_file: Path | None = None,
) -> None:
    """Configure logging for the creator_studio package.

    Args:
        level: Logging level, overridden by CREATOR_STUDIO_LOG_LEVEL.
        log_file: Optional file path to write logs to.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level_from_env(level))
    logger.handlers.clear()

    console_handler = RichHandler(console=Console(stderr=True), show_path=False)
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    _CONFIGURED = True
