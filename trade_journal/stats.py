"""
stats.py
--------

Performance statistics computed from a list of TradeRecord objects.
Splitting analytics into its own module makes it easy to reuse these
functions in different contexts (web pages, JSON API, CSV reports)
without coupling them to UI or storage concerns.

Every function here is total: empty input, missing stops and
non-finite prices all produce defined values, and no ratio ever returns
NaN or infinity.
"""

import math
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from dateutil.relativedelta import relativedelta

from .models import (
    CapitalState,
    Direction,
    EquityPoint,
    PerformanceSnapshot,
    TradeRecord,
)

DEFAULT_STARTING_CAPITAL = 10000.0


class DirectionFilter(str, Enum):
    ALL = "all"
    LONG = "long"
    SHORT = "short"


class TimeWindow(str, Enum):
    ALL = "all"
    THIS_WEEK = "week"
    THIS_MONTH = "month"
    LAST_3_MONTHS = "3months"
    LAST_6_MONTHS = "6months"
    LAST_12_MONTHS = "12months"


# ---------- filtering ----------
def window_start(window: TimeWindow, now: Optional[datetime] = None) -> Optional[date]:
    """First calendar day included by ``window``, or None for no bound."""
    today = (now or datetime.now()).date()
    if window is TimeWindow.THIS_WEEK:
        # weekday() is 0 on Monday, so Sunday goes back six days
        return today - timedelta(days=today.weekday())
    if window is TimeWindow.THIS_MONTH:
        return today.replace(day=1)
    if window is TimeWindow.LAST_3_MONTHS:
        return today - relativedelta(months=3)
    if window is TimeWindow.LAST_6_MONTHS:
        return today - relativedelta(months=6)
    if window is TimeWindow.LAST_12_MONTHS:
        return today - relativedelta(years=1)
    return None


def filter_trades(
    trades: Iterable[TradeRecord],
    direction: DirectionFilter = DirectionFilter.ALL,
    window: TimeWindow = TimeWindow.ALL,
    now: Optional[datetime] = None,
) -> List[TradeRecord]:
    """Keep trades matching both the direction and the time window."""
    start = window_start(window, now)
    wanted = None if direction is DirectionFilter.ALL else Direction(direction.value)

    out = []
    for trade in trades:
        if wanted is not None and trade.direction is not wanted:
            continue
        if start is not None and trade.occurred_on < start:
            continue
        out.append(trade)
    return out


# ---------- capital / win rate / risk:reward ----------
def compute_capital(trades: List[TradeRecord], starting_capital: float) -> CapitalState:
    total_pnl = sum(t.pnl_amount for t in trades)
    current = starting_capital + total_pnl
    pct_change = 0.0 if starting_capital == 0 else (current - starting_capital) / starting_capital * 100
    return CapitalState(
        starting_capital=starting_capital,
        current_capital=current,
        total_pnl=total_pnl,
        pct_change=pct_change,
    )


def compute_win_rate(trades: List[TradeRecord]) -> float:
    """Percentage of decided trades that were profitable.

    Break-even trades are neither wins nor losses and do not count
    towards the denominator.
    """
    wins = sum(1 for t in trades if t.pnl_amount > 0)
    losses = sum(1 for t in trades if t.pnl_amount < 0)
    decided = wins + losses
    return wins / decided * 100 if decided else 0.0


def risk_reward(trade: TradeRecord) -> Optional[float]:
    """Reward over risk for one trade, or None when it cannot be computed."""
    stop = trade.stop_price
    if stop is None or stop == trade.entry_price:
        return None
    if not (trade.has_finite_prices and math.isfinite(stop)):
        return None
    size = trade.effective_size
    risk = abs(trade.entry_price - stop) * size
    if risk <= 0:
        return None
    ratio = abs(trade.exit_price - trade.entry_price) * size / risk
    if not math.isfinite(ratio) or ratio <= 0:
        return None
    return ratio


def compute_average_risk_reward(trades: List[TradeRecord]) -> float:
    ratios = [r for r in (risk_reward(t) for t in trades) if r is not None]
    return sum(ratios) / len(ratios) if ratios else 0.0


# ---------- equity curve ----------
def compute_equity_curve(trades: List[TradeRecord]) -> List[EquityPoint]:
    """Cumulative P/L, one point per trade, oldest first.

    ``sorted`` is stable, so trades sharing a date keep storage order.
    """
    cumulative = 0.0
    points = []
    for trade in sorted(trades, key=lambda t: t.occurred_on):
        cumulative += trade.pnl_amount
        points.append(EquityPoint(trade.occurred_on, cumulative))
    return points


def daily_equity_frame(points: List[EquityPoint], starting_capital: float) -> pd.DataFrame:
    """End-of-day equity between the first and last trade.

    Returns a DataFrame with columns ['date', 'pnl', 'cumulative_pnl', 'equity'].
    Days without trades carry the previous day's equity forward.
    """
    columns = ["date", "pnl", "cumulative_pnl", "equity"]
    # undated trades sit on date.min, outside what pandas can index by day
    earliest = pd.Timestamp.min.date() + timedelta(days=1)
    points = [p for p in points if p.occurred_on >= earliest]
    if not points:
        return pd.DataFrame(columns=columns)

    curve = pd.DataFrame(
        {
            "date": [p.occurred_on for p in points],
            "cumulative_pnl": [p.cumulative_pnl for p in points],
        }
    )
    # last point of each day is that day's close
    eod = curve.groupby("date")["cumulative_pnl"].last()

    days = pd.date_range(eod.index.min(), eod.index.max(), freq="D").date
    eod = eod.reindex(pd.Index(days, name="date")).ffill()

    out = pd.DataFrame(
        {
            "date": eod.index,
            "pnl": eod.diff().fillna(eod.iloc[0]).values,
            "cumulative_pnl": eod.values,
        }
    )
    out["equity"] = out["cumulative_pnl"] + starting_capital
    return out[columns]


# ---------- summary ----------
def compute_metrics(trades: List[TradeRecord]) -> Dict[str, Any]:
    """Compute summary statistics for the given trades.

    Parameters
    ----------
    trades: List[TradeRecord]
        Trades for which to compute metrics.

    Returns
    -------
    Dict[str, Any]
        Dictionary of computed metrics. Keys include:
        - total_trades: int
        - average_pnl: float
        - average_win: float
        - average_loss: float
        - largest_win: float
        - largest_loss: float
        - profit_factor: float
        - expectancy: float
    """
    metrics = {
        "total_trades": 0,
        "average_pnl": 0.0,
        "average_win": 0.0,
        "average_loss": 0.0,
        "largest_win": 0.0,
        "largest_loss": 0.0,
        "profit_factor": 0.0,
        "expectancy": 0.0,
    }
    if not trades:
        return metrics

    pnls = [t.pnl_amount for t in trades]
    wins = [pnl for pnl in pnls if pnl > 0]
    losses = [pnl for pnl in pnls if pnl < 0]
    total_trades = len(trades)
    average_win = sum(wins) / len(wins) if wins else 0.0
    average_loss = sum(losses) / len(losses) if losses else 0.0
    total_wins = sum(wins)
    total_losses = -sum(losses)  # sum of absolute loss values
    # expectancy per trade = p(win) * avg win - p(loss) * |avg loss|
    expectancy = (len(wins) / total_trades * average_win) - (len(losses) / total_trades * -average_loss)

    metrics.update(
        {
            "total_trades": total_trades,
            "average_pnl": sum(pnls) / total_trades,
            "average_win": average_win,
            "average_loss": average_loss,
            "largest_win": max(wins) if wins else 0.0,
            "largest_loss": min(losses) if losses else 0.0,
            "profit_factor": total_wins / total_losses if total_losses != 0 else 0.0,
            "expectancy": expectancy,
        }
    )
    return metrics


def compute_snapshot(
    trades: List[TradeRecord],
    starting_capital: float = DEFAULT_STARTING_CAPITAL,
    direction: DirectionFilter = DirectionFilter.ALL,
    window: TimeWindow = TimeWindow.ALL,
    now: Optional[datetime] = None,
) -> PerformanceSnapshot:
    """Filter ``trades`` and derive every statistic from the result."""
    selected = filter_trades(trades, direction, window, now)
    return PerformanceSnapshot(
        capital=compute_capital(selected, starting_capital),
        win_rate=compute_win_rate(selected),
        average_risk_reward=compute_average_risk_reward(selected),
        equity_curve=compute_equity_curve(selected),
        trades=selected,
        metrics=compute_metrics(selected),
    )
