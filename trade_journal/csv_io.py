"""
csv_io.py
---------

CSV export and import of trades. Export writes the canonical columns;
import runs every row through the normalizer, so files exported by older
versions of the journal (``qty``, ``pnl``, ``position``...) load too.
"""

import csv
import io
import logging
import math
from datetime import date
from typing import List, Tuple

from .errors import InvalidTrade
from .models import NewTrade, TradeRecord
from .normalizer import normalize_trade
from .service import validate_new_trade

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "id", "date", "symbol", "type", "entry", "exit", "size", "stop", "pnl_usd", "pnl_percent", "notes",
]
REQUIRED_COLUMNS = {"date", "symbol", "entry", "exit"}


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and not math.isfinite(value):
        return ""
    return str(value)


def export_trades(trades: List[TradeRecord]) -> str:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(EXPORT_COLUMNS)
    for t in trades:
        w.writerow([
            _cell(t.id),
            t.occurred_on.isoformat(),
            t.symbol,
            t.direction.value,
            _cell(t.entry_price),
            _cell(t.exit_price),
            _cell(t.size),
            _cell(t.stop_price),
            _cell(t.pnl_amount),
            _cell(t.pnl_percent),
            (t.notes or "").replace("\n", " ").strip(),
        ])
    return out.getvalue()


def parse_trades_csv(content: str) -> Tuple[List[NewTrade], List[str]]:
    """Parse uploaded CSV text into new trades.

    Returns (trades, errors); a bad row is reported by line number and
    skipped. A file missing required columns yields no trades.
    P/L columns in the file are ignored: it is recomputed on insert.
    """
    reader = csv.DictReader(io.StringIO(content))
    fieldnames = {fn.strip().lower() for fn in (reader.fieldnames or [])}
    missing = set(REQUIRED_COLUMNS)
    # accept the legacy names for the columns that have them
    if "date_time" in fieldnames:
        missing.discard("date")
    if "instrument" in fieldnames:
        missing.discard("symbol")
    missing -= fieldnames
    if missing:
        return [], [f"Missing columns: {', '.join(sorted(missing))}"]

    trades, errors = [], []
    for line, row in enumerate(reader, start=2):
        r = {(k or "").strip().lower(): v for k, v in row.items()}
        record = normalize_trade(r)
        trade = NewTrade(
            occurred_on=record.occurred_on,
            symbol=record.symbol,
            direction=record.direction,
            entry_price=record.entry_price,
            exit_price=record.exit_price,
            size=record.size if record.size is not None else 1.0,
            stop_price=record.stop_price,
            notes=record.notes,
        )
        problem = _row_problem(trade)
        if problem:
            errors.append(f"line {line}: {problem}")
            continue
        trades.append(trade)
    logger.info("parsed %d trades from csv (%d rejected)", len(trades), len(errors))
    return trades, errors


def _row_problem(trade: NewTrade) -> str:
    if trade.occurred_on == date.min:
        return "Date is missing or unreadable."
    try:
        validate_new_trade(trade)
    except InvalidTrade as e:
        return str(e)
    return ""
