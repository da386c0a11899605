"""Tests for mapping stored rows onto TradeRecord."""

from __future__ import annotations

import math
from datetime import date, datetime

from trade_journal.models import Direction
from trade_journal.normalizer import normalize_trade, normalize_trades


class TestCurrentSchema:
    def test_full_row(self):
        t = normalize_trade(
            {
                "id": 7,
                "user_id": "abc",
                "date": "2024-05-15",
                "symbol": " aapl ",
                "type": "short",
                "entry": 100,
                "exit": "95.5",
                "size": 3,
                "stop": 102,
                "pnl_usd": 13.5,
                "pnl_percent": 4.5,
                "notes": "faded the open",
            }
        )
        assert t.id == 7
        assert t.owner_id == "abc"
        assert t.occurred_on == date(2024, 5, 15)
        assert t.symbol == "AAPL"
        assert t.direction is Direction.SHORT
        assert t.entry_price == 100.0
        assert t.exit_price == 95.5
        assert t.size == 3.0
        assert t.stop_price == 102.0
        assert t.pnl_amount == 13.5
        assert t.pnl_percent == 4.5
        assert t.notes == "faded the open"


class TestLegacyFallbacks:
    def test_pnl_falls_back_to_legacy_field(self):
        assert normalize_trade({"pnl": -20}).pnl_amount == -20.0

    def test_dedicated_pnl_field_wins(self):
        assert normalize_trade({"pnl_usd": 5, "pnl": 99}).pnl_amount == 5.0

    def test_missing_pnl_defaults_to_zero(self):
        assert normalize_trade({}).pnl_amount == 0.0

    def test_missing_percent_is_unknown_not_zero(self):
        assert normalize_trade({"pnl": 3}).pnl_percent is None
        assert normalize_trade({"pnl_percent": 0}).pnl_percent == 0.0

    def test_quantity_names(self):
        assert normalize_trade({"qty": "4"}).size == 4.0
        assert normalize_trade({"quantity": 2}).size == 2.0
        assert normalize_trade({}).size is None

    def test_legacy_position_and_instrument(self):
        t = normalize_trade({"position": "SHORT", "instrument": "btcusdt", "date_time": "2024-03-01T10:15:00"})
        assert t.direction is Direction.SHORT
        assert t.symbol == "BTCUSDT"
        assert t.occurred_on == date(2024, 3, 1)

    def test_no_stop_fallback(self):
        assert normalize_trade({"stop_loss": 90}).stop_price is None


class TestMalformedFields:
    def test_never_raises_on_garbage(self):
        t = normalize_trade(
            {"date": "yesterday", "type": "sideways", "entry": "n/a", "exit": None, "pnl": "lots", "size": []}
        )
        assert t.occurred_on == date.min
        assert t.direction is Direction.LONG
        assert math.isnan(t.entry_price)
        assert math.isnan(t.exit_price)
        assert t.pnl_amount == 0.0
        assert t.size is None

    def test_non_finite_pnl_is_zeroed(self):
        assert normalize_trade({"pnl_usd": "inf"}).pnl_amount == 0.0

    def test_integers_too_large_for_float_degrade(self):
        t = normalize_trade({"pnl_usd": 10**400, "entry": 10**400, "size": 10**400})
        assert t.pnl_amount == 0.0
        assert math.isnan(t.entry_price)
        assert t.size is None

    def test_oversized_row_does_not_stop_collection(self):
        trades = normalize_trades([{"pnl": 10**400}, {"pnl": 5}])
        assert [t.pnl_amount for t in trades] == [0.0, 5.0]

    def test_blank_string_counts_as_absent(self):
        assert normalize_trade({"pnl_usd": "", "pnl": 8}).pnl_amount == 8.0

    def test_date_objects_and_timestamps(self):
        assert normalize_trade({"date": date(2024, 1, 2)}).occurred_on == date(2024, 1, 2)
        assert normalize_trade({"date": datetime(2024, 1, 2, 23, 0)}).occurred_on == date(2024, 1, 2)
        assert normalize_trade({"created_at": "2024-01-02T08:00:00Z"}).occurred_on == date(2024, 1, 2)

    def test_bad_row_does_not_stop_collection(self):
        trades = normalize_trades([{"pnl": "x"}, {"pnl": 5}])
        assert [t.pnl_amount for t in trades] == [0.0, 5.0]
