"""Logging setup shared by the web service and the terminal app."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mindful.workspace import load_settings, log_path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_HANDLER = "mindful.file"
CONSOLE_HANDLER = "mindful.console"


def _replace_handler(logger: logging.Logger, handler: logging.Handler, name: str) -> None:
    for old in [h for h in logger.handlers if h.get_name() == name]:
        logger.removeHandler(old)
        old.close()
    handler.set_name(name)
    logger.addHandler(handler)


def setup_logging(
    root: Path | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure the root logger from settings.yaml (level + log file).

    Safe to call more than once: handlers from an earlier call are replaced.
    """
    settings = load_settings(root)
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)

    file_path = log_path(root)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(formatter)
    _replace_handler(logger, handler, FILE_HANDLER)

    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        _replace_handler(logger, stream, CONSOLE_HANDLER)
    return logger
