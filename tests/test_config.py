"""Tests for configuration helpers and logging setup."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from gemini_finance import config, logging_setup
from gemini_finance.exceptions import ConfigError


def test_api_key_from_environment(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "legacy")
    assert config.get_api_key() == "legacy"
    monkeypatch.setenv("GEMINI_API_KEY", "primary")
    assert config.get_api_key() == "primary"


def test_missing_api_key(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    with pytest.raises(ConfigError):
        config.get_api_key()


def test_timezone_resolution() -> None:
    assert config.get_timezone("") is None
    utc = config.get_timezone("UTC")
    assert utc.utcoffset(None) == timedelta(0)
    with pytest.raises(ConfigError):
        config.get_timezone("Mars/Olympus_Mons")


def test_ensure_data_directories(tmp_path) -> None:
    config.ensure_data_directories(tmp_path / "data")
    assert (tmp_path / "data" / "users").is_dir()
    assert (tmp_path / "data" / "logs").is_dir()


def test_user_context_filter() -> None:
    record = logging.LogRecord("gemini_finance.test", logging.INFO, __file__, 1, "msg", None, None)
    logging_setup.set_user_context("ana")
    try:
        logging_setup._user_filter.filter(record)
        assert record.user == "ana"
    finally:
        logging_setup.set_user_context(None)
    logging_setup._user_filter.filter(record)
    assert record.user == "anonymous"


def test_get_logger_is_namespaced() -> None:
    logger = logging_setup.get_logger("gemini_finance.store")
    assert logger.name == "gemini_finance.store"
    assert logging.getLogger("gemini_finance").handlers
