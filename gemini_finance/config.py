"""Configuration management for Gemini Finance.

This module centralizes all configuration values including paths,
model names, locale defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from datetime import tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigError

# Base project root - assumes this file is in gemini_finance/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("GEMINI_FINANCE_DATA_DIR", _PROJECT_ROOT / "data"))
USERS_DIR = DATA_DIR / "users"
LOGS_DIR = DATA_DIR / "logs"
SESSION_FILE = DATA_DIR / "session.json"

# Gemini models
CHAT_MODEL = os.getenv("GEMINI_FINANCE_MODEL", "gemini-2.5-flash")
IMAGE_MODEL = os.getenv("GEMINI_FINANCE_IMAGE_MODEL", "gemini-2.5-flash-image")

# Presentation
LOCALE = os.getenv("GEMINI_FINANCE_LOCALE", "pt-BR")
TIMEZONE = os.getenv("GEMINI_FINANCE_TIMEZONE") or None

LOG_LEVEL = os.getenv("GEMINI_FINANCE_LOG_LEVEL", "INFO")


def ensure_data_directories(data_dir: Optional[Path] = None) -> None:
    """Create all required data directories if they don't exist."""
    root = Path(data_dir) if data_dir is not None else DATA_DIR
    for directory in [root, root / "users", root / "logs"]:
        directory.mkdir(parents=True, exist_ok=True)


def get_api_key() -> str:
    """Return the Gemini API key from the environment.

    ``GEMINI_API_KEY`` wins over the legacy ``API_KEY`` variable.
    """
    key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    if not key:
        raise ConfigError("Gemini API key not configured. Set GEMINI_API_KEY.")
    return key


def get_timezone(name: Optional[str] = None) -> Optional[tzinfo]:
    """Resolve the configured timezone; ``None`` means host local time."""
    name = name if name is not None else TIMEZONE
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise ConfigError(f"Unknown timezone '{name}'") from exc
