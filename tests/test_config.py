import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from budgetflow.config import Settings, configure_logging, get_settings


def test_defaults(monkeypatch):
    for name in ("DATA_DIR", "SNAPSHOT_FILE", "BASE_CURRENCY", "AUTOSAVE", "LOG_LEVEL"):
        monkeypatch.delenv(f"BUDGETFLOW_{name}", raising=False)
    settings = Settings()
    assert settings.snapshot_path == Path("data") / "budgetflow_data.json"
    assert settings.base_currency == "EUR"
    assert settings.autosave is True


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("BUDGETFLOW_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("BUDGETFLOW_SNAPSHOT_FILE", "mine.json")
    monkeypatch.setenv("BUDGETFLOW_AUTOSAVE", "false")
    monkeypatch.setenv("BUDGETFLOW_BASE_CURRENCY", "GBP")
    settings = Settings()
    assert settings.snapshot_path == tmp_path / "mine.json"
    assert settings.autosave is False
    assert settings.base_currency == "GBP"


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()


def test_configure_logging_sets_package_level():
    configure_logging("debug")
    assert logging.getLogger("budgetflow").level == logging.DEBUG
    configure_logging("WARNING")
    assert logging.getLogger("budgetflow").level == logging.WARNING


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("BUDGETFLOW_BASE_CURRENCY", "EURO")
    with pytest.raises(ValidationError):
        Settings()
    monkeypatch.setenv("BUDGETFLOW_BASE_CURRENCY", "EUR")
    monkeypatch.setenv("BUDGETFLOW_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings()
