"""Tests for the SQLite trade store."""

from __future__ import annotations

from datetime import date

import pytest

from tests.conftest import make_new_trade
from trade_journal.database import TradeJournalDB
from trade_journal.errors import StorageUnavailable
from trade_journal.models import Direction
from trade_journal.normalizer import normalize_trades


class TestTrades:
    def test_insert_assigns_id_and_pnl(self, db):
        record = db.insert_trade("u1", make_new_trade())
        assert record.id is not None
        assert record.owner_id == "u1"
        assert record.pnl_amount == pytest.approx(100.0)
        assert record.pnl_percent == pytest.approx(10.0)

    def test_short_pnl(self, db):
        record = db.insert_trade("u1", make_new_trade(direction=Direction.SHORT, entry_price=50, exit_price=40, size=5))
        assert record.pnl_amount == pytest.approx(50.0)

    def test_list_is_per_owner_and_normalizes(self, db):
        db.insert_trade("u1", make_new_trade(symbol="AAPL"))
        db.insert_trade("u2", make_new_trade(symbol="MSFT"))
        db.insert_trade("u1", make_new_trade(symbol="TSLA", stop_price=None, occurred_on=date(2024, 5, 1)))

        trades = normalize_trades(db.list_trades("u1"))
        assert [t.symbol for t in trades] == ["AAPL", "TSLA"]
        assert trades[1].stop_price is None
        assert trades[1].occurred_on == date(2024, 5, 1)
        assert all(t.owner_id == "u1" for t in trades)

    def test_stored_pnl_is_read_back_as_is(self, db):
        db.insert_trade("u1", make_new_trade())
        with db.conn:
            db.conn.execute("UPDATE trades SET pnl_usd = 42")
        assert normalize_trades(db.list_trades("u1"))[0].pnl_amount == 42.0

    def test_closed_connection_reports_storage_unavailable(self, tmp_path):
        journal_db = TradeJournalDB(str(tmp_path / "x.db"))
        journal_db.close()
        with pytest.raises(StorageUnavailable):
            journal_db.list_trades("u1")


class TestSettings:
    def test_unset_starting_capital(self, db):
        assert db.get_starting_capital("u1") is None

    def test_starting_capital_survives_reopen(self, tmp_path):
        path = str(tmp_path / "journal.db")
        first = TradeJournalDB(path)
        first.set_starting_capital("u1", 2500)
        first.set_starting_capital("u1", 5000.5)
        first.close()

        second = TradeJournalDB(path)
        assert second.get_starting_capital("u1") == 5000.5
        second.close()

    def test_starting_capital_is_per_owner(self, db):
        db.set_starting_capital("u1", 2500)
        db.set_starting_capital("u2", 800)
        assert db.get_starting_capital("u1") == 2500
        assert db.get_starting_capital("u2") == 800
        assert db.get_starting_capital("u3") is None
