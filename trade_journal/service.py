"""
service.py
----------

The one place where trades are fetched, normalized and turned into
statistics. Every page of the web app (and the CSV import) goes through
JournalService, so there is a single source of truth for how numbers
are derived.

Collaborator failures are recovered here: a failed listing falls back
to the last trades seen for that user, and the problem is returned to
the caller alongside the data instead of being raised.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .errors import InvalidTrade, JournalError, MissingUser, StorageUnavailable
from .interfaces import IdentityProvider, SettingsStore, TradeStore
from .models import Direction, NewTrade, PerformanceSnapshot, TradeRecord
from .normalizer import normalize_trades
from .stats import (
    DEFAULT_STARTING_CAPITAL,
    DirectionFilter,
    TimeWindow,
    compute_snapshot,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    trades: List[TradeRecord]
    problems: List[JournalError] = field(default_factory=list)
    from_cache: bool = False


@dataclass
class SnapshotResult:
    snapshot: PerformanceSnapshot
    problems: List[JournalError] = field(default_factory=list)
    from_cache: bool = False


def validate_new_trade(trade: NewTrade) -> None:
    if not trade.symbol.strip():
        raise InvalidTrade("Symbol is required.")
    for name in ("entry_price", "exit_price", "size"):
        if not math.isfinite(getattr(trade, name)):
            raise InvalidTrade(f"{name.replace('_', ' ').capitalize()} must be a number.")
    if trade.size <= 0:
        raise InvalidTrade("Size must be greater than zero.")
    if trade.stop_price is not None and not math.isfinite(trade.stop_price):
        raise InvalidTrade("Stop price must be a number.")


def new_trade_from_form(form: Mapping[str, Any]) -> NewTrade:
    """Parse submitted form fields into a NewTrade.

    Raises InvalidTrade with a user-facing message on bad input.
    """
    def required_number(name: str) -> float:
        try:
            return float(str(form.get(name, "")).strip())
        except ValueError:
            raise InvalidTrade(f"{name.replace('_', ' ').capitalize()} must be a number.") from None

    try:
        occurred_on = date.fromisoformat(str(form.get("date", "")).strip())
    except ValueError:
        raise InvalidTrade("Date must be in YYYY-MM-DD format.") from None

    try:
        direction = Direction(str(form.get("direction", "long")).strip().lower())
    except ValueError:
        raise InvalidTrade("Direction must be long or short.") from None

    stop_raw = str(form.get("stop_price", "") or "").strip()
    stop_price = required_number("stop_price") if stop_raw else None

    trade = NewTrade(
        occurred_on=occurred_on,
        symbol=str(form.get("symbol", "")).strip().upper(),
        direction=direction,
        entry_price=required_number("entry_price"),
        exit_price=required_number("exit_price"),
        size=required_number("size"),
        stop_price=stop_price,
        notes=str(form.get("notes", "") or ""),
    )
    validate_new_trade(trade)
    return trade


class JournalService:
    def __init__(
        self,
        identity: IdentityProvider,
        store: TradeStore,
        settings: SettingsStore,
        default_starting_capital: float = DEFAULT_STARTING_CAPITAL,
        last_known: Optional[Dict[str, List[TradeRecord]]] = None,
    ) -> None:
        self.identity = identity
        self.store = store
        self.settings = settings
        self.default_starting_capital = default_starting_capital
        # shared across services when one is built per request
        self._last_known = last_known if last_known is not None else {}

    # ---------- identity ----------
    def current_user(self) -> Optional[str]:
        return self.identity.get_current_user()

    def require_user(self) -> str:
        user = self.current_user()
        if user is None:
            raise MissingUser()
        return user

    # ---------- trades ----------
    def load_trades(self) -> LoadResult:
        """Fetch and normalize the current user's trades. Never raises."""
        user = self.current_user()
        if user is None:
            return LoadResult([], [MissingUser()])

        try:
            rows = self.store.list_trades(user)
        except StorageUnavailable as e:
            fallback = self._last_known.get(user, [])
            logger.warning("trade listing failed, using %d cached trades: %s", len(fallback), e)
            return LoadResult(list(fallback), [e], from_cache=bool(fallback))

        trades = normalize_trades(rows)
        self._last_known[user] = trades
        return LoadResult(list(trades))

    def add_trade(self, trade: NewTrade) -> TradeRecord:
        """Validate and persist a trade for the current user.

        Raises MissingUser, InvalidTrade or StorageUnavailable.
        """
        user = self.require_user()
        validate_new_trade(trade)
        record = self.store.insert_trade(user, trade)
        if user in self._last_known:
            self._last_known[user].append(record)
        return record

    # ---------- starting capital ----------
    def starting_capital(self) -> float:
        user = self.current_user()
        if user is None:
            return self.default_starting_capital
        try:
            value = self.settings.get_starting_capital(user)
        except StorageUnavailable as e:
            logger.warning("could not read starting capital: %s", e)
            value = None
        if value is None or not math.isfinite(value):
            return self.default_starting_capital
        return value

    def set_starting_capital(self, value: float) -> None:
        if not math.isfinite(value):
            raise InvalidTrade("Starting capital must be a number.")
        self.settings.set_starting_capital(self.require_user(), value)

    # ---------- statistics ----------
    def snapshot(
        self,
        direction: DirectionFilter = DirectionFilter.ALL,
        window: TimeWindow = TimeWindow.ALL,
        now: Optional[datetime] = None,
    ) -> SnapshotResult:
        loaded = self.load_trades()
        snap = compute_snapshot(loaded.trades, self.starting_capital(), direction, window, now)
        return SnapshotResult(snap, loaded.problems, loaded.from_cache)
