from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from startup_config.node.settings import LoggingSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Marks handlers installed here so a second call replaces them.
_HANDLER_MARKER = "_startup_config_handler"


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {name}")
    return level


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def init_logging(settings: LoggingSettings) -> None:
    """Configure the root logger: console output plus an optional daily rotated file."""
    level = _resolve_level(settings.level)
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    console = _mark(logging.StreamHandler(sys.stderr))
    console.setFormatter(formatter)
    root.addHandler(console)

    if settings.file.path:
        path = Path(settings.file.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = _mark(
            TimedRotatingFileHandler(
                path,
                when="midnight",
                backupCount=settings.file.rotation.backup_count,
                encoding="utf-8",
            )
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(level)
