"""Tests for CSV export and import."""

from __future__ import annotations

import csv
import io
from datetime import date

import pytest

from tests.conftest import make_trade
from trade_journal.csv_io import EXPORT_COLUMNS, export_trades, parse_trades_csv
from trade_journal.models import Direction


def test_export_writes_canonical_columns():
    text = export_trades([make_trade(pnl=12.5, stop=95, trade_id=3)])
    rows = list(csv.DictReader(io.StringIO(text)))
    assert list(rows[0].keys()) == EXPORT_COLUMNS
    assert rows[0]["id"] == "3"
    assert rows[0]["type"] == "long"
    assert rows[0]["pnl_usd"] == "12.5"
    assert rows[0]["pnl_percent"] == ""


def test_import_accepts_legacy_columns():
    content = "date_time,instrument,position,entry,exit,qty,pnl\n2024-05-01 10:00,msft,short,400,390,2,999\n"
    trades, errors = parse_trades_csv(content)
    assert errors == []
    assert len(trades) == 1
    t = trades[0]
    assert t.occurred_on == date(2024, 5, 1)
    assert t.symbol == "MSFT"
    assert t.direction is Direction.SHORT
    assert t.size == 2
    # stored pnl is recomputed on insert, not trusted from the file
    assert t.pnl() == pytest.approx(20)


def test_import_reports_bad_rows_and_keeps_good_ones():
    content = "date,symbol,entry,exit,size\n2024-05-01,AAPL,1,2,1\nnot-a-date,AAPL,1,2,1\n2024-05-02,,1,2,1\n"
    trades, errors = parse_trades_csv(content)
    assert len(trades) == 1
    assert errors[0].startswith("line 3")
    assert errors[1].startswith("line 4")


def test_import_missing_columns():
    trades, errors = parse_trades_csv("symbol,entry\nAAPL,1\n")
    assert trades == []
    assert "date" in errors[0] and "exit" in errors[0]


def test_import_defaults_missing_size_to_one():
    trades, _ = parse_trades_csv("date,symbol,entry,exit\n2024-05-01,AAPL,10,12\n")
    assert trades[0].size == 1.0
