"""
models.py
---------

Defines the core data model for a trade. A trade represents a single
closed position in the user's trading journal. Keeping this in a separate
module lets the normalizer, the statistics engine and the storage
adapters share one canonical shape.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


@dataclass
class TradeRecord:
    """Represents a single trade entry, after normalization.

    Attributes
    ----------
    id: Optional[int]
        Storage identifier (None for records not yet persisted).
    owner_id: Optional[str]
        Identifier of the user who owns the trade.
    occurred_on: date
        Calendar day the trade was closed. Used for filtering and ordering.
    symbol: str
        Instrument label (e.g. 'BTCUSDT', 'AAPL').
    direction: Direction
        Long or short.
    entry_price: float
        Price at which the position was opened.
    exit_price: float
        Price at which the position was closed.
    size: Optional[float]
        Quantity traded. Missing or non-positive sizes count as 1 in
        risk:reward math only.
    stop_price: Optional[float]
        Stop level. None means risk:reward is unknown for this trade.
    pnl_amount: float
        Realized profit or loss in account currency. Authoritative.
    pnl_percent: Optional[float]
        Realized profit or loss as a percentage of entry notional.
        None means unknown, which is not the same as 0.
    notes: str
        User provided notes or comments about the trade.
    """

    id: Optional[int]
    owner_id: Optional[str]
    occurred_on: date
    symbol: str
    direction: Direction
    entry_price: float
    exit_price: float
    size: Optional[float] = None
    stop_price: Optional[float] = None
    pnl_amount: float = 0.0
    pnl_percent: Optional[float] = None
    notes: str = ""

    @property
    def effective_size(self) -> float:
        """Size used for ratio math: 1 when missing or non-positive."""
        if self.size is None or not math.isfinite(self.size) or self.size <= 0:
            return 1.0
        return self.size

    @property
    def has_finite_prices(self) -> bool:
        return math.isfinite(self.entry_price) and math.isfinite(self.exit_price)


@dataclass
class NewTrade:
    """A trade as entered by the user, before it is persisted.

    P/L fields are absent on purpose: they are derived once, when the
    trade is written, by :func:`compute_pnl`.
    """

    occurred_on: date
    symbol: str
    direction: Direction
    entry_price: float
    exit_price: float
    size: float
    stop_price: Optional[float] = None
    notes: str = ""

    def pnl(self) -> float:
        return compute_pnl(self.direction, self.entry_price, self.exit_price, self.size)

    def pnl_percent(self) -> Optional[float]:
        notional = self.entry_price * self.size
        if notional == 0 or not math.isfinite(notional):
            return None
        return self.pnl() / abs(notional) * 100


def compute_pnl(direction: Direction, entry_price: float, exit_price: float, size: float) -> float:
    """Compute profit or loss (PnL) for a closed position.

    For long positions, PnL = (exit_price - entry_price) * size.
    For short positions, PnL = (entry_price - exit_price) * size.
    """
    if direction is Direction.LONG:
        return (exit_price - entry_price) * size
    return (entry_price - exit_price) * size


@dataclass
class CapitalState:
    starting_capital: float
    current_capital: float
    total_pnl: float
    pct_change: float


@dataclass(frozen=True)
class EquityPoint:
    occurred_on: date
    cumulative_pnl: float


@dataclass
class PerformanceSnapshot:
    """Everything a page needs to render performance for one filter."""

    capital: CapitalState
    win_rate: float
    average_risk_reward: float
    equity_curve: List[EquityPoint]
    trades: List[TradeRecord]
    metrics: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "starting_capital": self.capital.starting_capital,
            "current_capital": self.capital.current_capital,
            "total_pnl": self.capital.total_pnl,
            "pct_change": self.capital.pct_change,
            "win_rate": self.win_rate,
            "average_risk_reward": self.average_risk_reward,
            "equity_curve": [
                {"date": p.occurred_on.isoformat(), "cumulative_pnl": p.cumulative_pnl}
                for p in self.equity_curve
            ],
            "metrics": dict(self.metrics),
        }
