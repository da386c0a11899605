"""Tests for environment configuration."""

from __future__ import annotations

from trade_journal.config import Settings


def test_defaults(monkeypatch):
    for name in ("SECRET_KEY", "TJ_DB", "TJ_BACKEND", "TJ_USER", "TJ_STARTING_CAPITAL", "TJ_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.backend == "sqlite"
    assert settings.user_id == "local"
    assert settings.default_starting_capital == 10000.0
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("TJ_BACKEND", " Supabase ")
    monkeypatch.setenv("TJ_STARTING_CAPITAL", "2500")
    monkeypatch.setenv("TJ_USER", "")
    monkeypatch.setenv("TJ_LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.backend == "supabase"
    assert settings.default_starting_capital == 2500.0
    assert settings.user_id is None
    assert settings.log_level == "DEBUG"


def test_bad_starting_capital_falls_back(monkeypatch):
    monkeypatch.setenv("TJ_STARTING_CAPITAL", "ten grand")
    assert Settings.from_env().default_starting_capital == 10000.0
