"""
database.py
-----------

This module encapsulates all interactions with the SQLite database used
to persist trades and the starting-capital setting. Keeping database
logic here makes it easy to swap the storage backend (see remote.py for
the hosted one) without affecting other parts of the application.

Rows are returned raw; turning them into TradeRecord objects is the
normalizer's job, so old rows and new rows go through the same path.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from .errors import StorageUnavailable
from .interfaces import SettingsStore, TradeStore
from .models import NewTrade, TradeRecord

logger = logging.getLogger(__name__)

STARTING_CAPITAL_KEY = "starting_capital"


def _capital_key(owner_id: str) -> str:
    return f"{STARTING_CAPITAL_KEY}:{owner_id}"


class TradeJournalDB(TradeStore, SettingsStore):
    """SQLite-backed repository for trades + settings."""

    def __init__(self, db_path: str = "trade_journal.db") -> None:
        self.db_path = db_path
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self._create_tables()
        except sqlite3.Error as e:
            raise StorageUnavailable("connect", str(e)) from e

    # ---------- schema ----------
    def _create_tables(self) -> None:
        """Create required tables (trades, settings) and indexes."""
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL, -- ISO8601 date
                    symbol TEXT NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('long','short')),
                    entry REAL NOT NULL,
                    exit REAL NOT NULL,
                    size REAL,
                    stop REAL,
                    pnl_usd REAL NOT NULL,
                    pnl_percent REAL,
                    notes TEXT
                )
                """
            )
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_trades_user_date ON trades(user_id, date)"
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    # ---------- trades ----------
    def insert_trade(self, owner_id: str, trade: NewTrade) -> TradeRecord:
        """Insert a new trade. P/L is derived here, once."""
        pnl = trade.pnl()
        pnl_percent = trade.pnl_percent()
        try:
            with self.conn:
                cur = self.conn.execute(
                    """
                    INSERT INTO trades
                        (user_id, date, symbol, type, entry, exit, size, stop, pnl_usd, pnl_percent, notes)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        owner_id,
                        trade.occurred_on.isoformat(),
                        trade.symbol,
                        trade.direction.value,
                        trade.entry_price,
                        trade.exit_price,
                        trade.size,
                        trade.stop_price,
                        pnl,
                        pnl_percent,
                        trade.notes,
                    ),
                )
        except sqlite3.Error as e:
            raise StorageUnavailable("insert_trade", str(e)) from e

        logger.info("stored trade %s for %s", cur.lastrowid, owner_id)
        return TradeRecord(
            id=cur.lastrowid,
            owner_id=owner_id,
            occurred_on=trade.occurred_on,
            symbol=trade.symbol,
            direction=trade.direction,
            entry_price=trade.entry_price,
            exit_price=trade.exit_price,
            size=trade.size,
            stop_price=trade.stop_price,
            pnl_amount=pnl,
            pnl_percent=pnl_percent,
            notes=trade.notes,
        )

    def list_trades(self, owner_id: str) -> List[Dict[str, Any]]:
        """Return all trades of one owner, in insertion order."""
        try:
            cur = self.conn.execute(
                "SELECT * FROM trades WHERE user_id = ? ORDER BY id", (owner_id,)
            )
            rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable("list_trades", str(e)) from e
        return [dict(r) for r in rows]

    # ---------- settings ----------
    def get_starting_capital(self, owner_id: str) -> Optional[float]:
        try:
            row = self.conn.execute(
                "SELECT value FROM settings WHERE key = ?", (_capital_key(owner_id),)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable("get_starting_capital", str(e)) from e
        if row is None:
            return None
        try:
            return float(row["value"])
        except ValueError:
            logger.warning("ignoring unreadable starting capital %r", row["value"])
            return None

    def set_starting_capital(self, owner_id: str, value: float) -> None:
        try:
            with self.conn:
                self.conn.execute(
                    """
                    INSERT INTO settings(key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value
                    """,
                    (_capital_key(owner_id), repr(float(value))),
                )
        except sqlite3.Error as e:
            raise StorageUnavailable("set_starting_capital", str(e)) from e

    # ---------- housekeeping ----------
    def close(self) -> None:
        self.conn.close()
