"""
normalizer.py
-------------

Maps stored trade rows onto :class:`TradeRecord`. Rows written by older
versions of the journal use different column names, so each canonical
field has an ordered list of source names (first present one wins) and a
default used when none is present or the value cannot be parsed.

Normalization never raises. A bad field degrades to its default and
the rest of the row (and the rest of the collection) is still used.
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .models import Direction, TradeRecord

logger = logging.getLogger(__name__)

# canonical field -> source names, in priority order
FIELD_SOURCES = {
    "id": ("id",),
    "owner_id": ("user_id", "owner_id"),
    "occurred_on": ("date", "date_time", "created_at"),
    "symbol": ("symbol", "instrument"),
    "direction": ("type", "direction", "position"),
    "entry_price": ("entry",),
    "exit_price": ("exit",),
    "size": ("size", "qty", "quantity"),
    "stop_price": ("stop",),
    "pnl_amount": ("pnl_usd", "pnl"),
    "pnl_percent": ("pnl_percent",),
    "notes": ("notes",),
}

_DIRECTION_ALIASES = {
    "long": Direction.LONG,
    "buy": Direction.LONG,
    "short": Direction.SHORT,
    "sell": Direction.SHORT,
}


def _lookup(raw: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = raw.get(name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _degraded(field_name: str, value: Any, default: Any) -> None:
    logger.debug("malformed %s=%r, using %r", field_name, value, default)


def normalize_trade(raw: Mapping[str, Any]) -> TradeRecord:
    """Build a canonical :class:`TradeRecord` from one stored row."""

    def pick(field_name: str) -> Any:
        return _lookup(raw, FIELD_SOURCES[field_name])

    def number(field_name: str, default: Optional[float]) -> Optional[float]:
        value = pick(field_name)
        if value is None:
            return default
        parsed = _to_float(value)
        if parsed is None:
            _degraded(field_name, value, default)
            return default
        return parsed

    raw_id = pick("id")
    owner = pick("owner_id")

    raw_date = pick("occurred_on")
    occurred_on = _to_date(raw_date)
    if occurred_on is None:
        _degraded("occurred_on", raw_date, date.min)
        occurred_on = date.min

    raw_direction = pick("direction")
    direction = _DIRECTION_ALIASES.get(str(raw_direction).strip().lower()) if raw_direction is not None else None
    if direction is None:
        if raw_direction is not None:
            _degraded("direction", raw_direction, Direction.LONG)
        direction = Direction.LONG

    pnl_amount = number("pnl_amount", 0.0)
    if not math.isfinite(pnl_amount):
        _degraded("pnl_amount", pnl_amount, 0.0)
        pnl_amount = 0.0

    pnl_percent = number("pnl_percent", None)
    if pnl_percent is not None and not math.isfinite(pnl_percent):
        _degraded("pnl_percent", pnl_percent, None)
        pnl_percent = None

    symbol = pick("symbol")
    notes = pick("notes")

    return TradeRecord(
        id=raw_id,
        owner_id=str(owner) if owner is not None else None,
        occurred_on=occurred_on,
        symbol=str(symbol).strip().upper() if symbol is not None else "",
        direction=direction,
        entry_price=number("entry_price", math.nan),
        exit_price=number("exit_price", math.nan),
        size=number("size", None),
        stop_price=number("stop_price", None),
        pnl_amount=pnl_amount,
        pnl_percent=pnl_percent,
        notes=str(notes) if notes is not None else "",
    )


def normalize_trades(rows: Iterable[Mapping[str, Any]]) -> List[TradeRecord]:
    """Normalize a collection, keeping storage order."""
    return [normalize_trade(row) for row in rows]
