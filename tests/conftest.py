"""Shared fixtures for the trade journal test suite."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from trade_journal.database import TradeJournalDB
from trade_journal.errors import StorageUnavailable
from trade_journal.interfaces import StaticIdentity, TradeStore
from trade_journal.models import Direction, NewTrade, TradeRecord
from trade_journal.service import JournalService

# Friday
NOW = datetime(2024, 5, 17, 15, 30)


def make_trade(
    pnl: float = 0.0,
    occurred_on: date = date(2024, 5, 15),
    direction: Direction = Direction.LONG,
    entry: float = 100.0,
    exit: float = 110.0,
    size=1.0,
    stop=None,
    trade_id=None,
) -> TradeRecord:
    return TradeRecord(
        id=trade_id,
        owner_id="u1",
        occurred_on=occurred_on,
        symbol="AAPL",
        direction=direction,
        entry_price=entry,
        exit_price=exit,
        size=size,
        stop_price=stop,
        pnl_amount=pnl,
    )


def make_new_trade(**overrides) -> NewTrade:
    fields = dict(
        occurred_on=date(2024, 5, 15),
        symbol="AAPL",
        direction=Direction.LONG,
        entry_price=100.0,
        exit_price=110.0,
        size=10.0,
        stop_price=95.0,
    )
    fields.update(overrides)
    return NewTrade(**fields)


class FlakyStore(TradeStore):
    """Wraps a real store; listing fails while ``down`` is set."""

    def __init__(self, inner: TradeStore):
        self.inner = inner
        self.down = False

    def list_trades(self, owner_id):
        if self.down:
            raise StorageUnavailable("list_trades", "backend offline")
        return self.inner.list_trades(owner_id)

    def insert_trade(self, owner_id, trade):
        if self.down:
            raise StorageUnavailable("insert_trade", "backend offline")
        return self.inner.insert_trade(owner_id, trade)


@pytest.fixture
def db(tmp_path):
    journal_db = TradeJournalDB(str(tmp_path / "journal.db"))
    yield journal_db
    journal_db.close()


@pytest.fixture
def service(db) -> JournalService:
    return JournalService(StaticIdentity("u1"), db, db)
