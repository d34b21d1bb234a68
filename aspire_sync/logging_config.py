"""File logging for the aspire-sync command line tool."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from aspire_sync import app_paths

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: Optional[logging.FileHandler] = None


def configure_logging(level: int = logging.INFO, path: Optional[Path] = None) -> Path:
    """Send records from every logger to one log file and return its path.

    Only the first call attaches a handler; later calls can lower the root
    level but keep writing to the file chosen first.  Sheet requests are
    logged at ``INFO`` without cell contents.
    """

    global _handler

    root_logger = logging.getLogger()
    if root_logger.level == logging.NOTSET or level < root_logger.level:
        root_logger.setLevel(level)

    if _handler is None:
        log_path = Path(path or app_paths.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _handler = logging.FileHandler(log_path, encoding="utf-8")
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(_handler)
        root_logger.debug("Logging to %s", log_path)

    return Path(_handler.baseFilename)


__all__ = ["LOG_FORMAT", "configure_logging"]
