"""
config.py
---------

Runtime configuration, read from environment variables in one place.

    SECRET_KEY           Flask session key (flash messages)
    TJ_DB                SQLite file for trades and settings
    TJ_BACKEND           'sqlite' (default) or 'supabase'
    TJ_USER              owner id in single-user sqlite mode
    SUPABASE_URL         project URL for the supabase backend
    SUPABASE_ANON_KEY    public API key for the supabase backend
    TJ_STARTING_CAPITAL  starting capital used until the user sets one
    TJ_LOG_LEVEL         logging level name
"""

import os
from dataclasses import dataclass
from typing import Optional

from .stats import DEFAULT_STARTING_CAPITAL


@dataclass
class Settings:
    secret_key: str = "dev-secret"
    db_path: str = "trade_journal.db"
    backend: str = "sqlite"
    user_id: Optional[str] = "local"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    default_starting_capital: float = DEFAULT_STARTING_CAPITAL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        capital = os.getenv("TJ_STARTING_CAPITAL", "")
        try:
            default_capital = float(capital) if capital else DEFAULT_STARTING_CAPITAL
        except ValueError:
            default_capital = DEFAULT_STARTING_CAPITAL

        return cls(
            secret_key=os.getenv("SECRET_KEY", "dev-secret"),
            db_path=os.getenv("TJ_DB", "trade_journal.db"),
            backend=os.getenv("TJ_BACKEND", "sqlite").strip().lower(),
            user_id=os.getenv("TJ_USER", "local") or None,
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
            default_starting_capital=default_capital,
            log_level=os.getenv("TJ_LOG_LEVEL", "INFO").upper(),
        )
