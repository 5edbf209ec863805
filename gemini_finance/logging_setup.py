"""Logging infrastructure with per-user context.

Library modules only call ``get_logger("gemini_finance.<module>")``. The
Streamlit entry point calls ``configure_logging()`` once, which attaches a
rotating file handler and a console handler to the package root logger.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from . import config

LOGGER_NAME = "gemini_finance"


class UserContextFilter(logging.Filter):
    """Add the logged-in nickname to log records."""

    def __init__(self):
        super().__init__()
        self.username: Optional[str] = None

    def filter(self, record):
        record.user = self.username or "anonymous"
        return True


_user_filter = UserContextFilter()
_configured = False


def configure_logging(level: Optional[str] = None, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach file and console handlers to the package logger, once."""
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if _configured:
        return logger

    level_name = (level or config.LOG_LEVEL).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.handlers.clear()

    target_dir = Path(log_dir) if log_dir is not None else config.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    # 5MB per file, 10 backups
    file_handler = RotatingFileHandler(
        target_dir / "app.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] [user:%(user)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.addFilter(_user_filter)
        logger.addHandler(handler)

    _configured = True
    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return a logger under the package namespace.

    A ``NullHandler`` keeps library use quiet until ``configure_logging`` runs.
    """
    pkg_logger = logging.getLogger(LOGGER_NAME)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


def set_user_context(username: Optional[str]) -> None:
    """Tag subsequent log records with ``username``."""
    _user_filter.username = username
