"""
Statistics computed from a strategy's own daily return series.

All inputs and outputs are decimal fractions. Degenerate input (empty
series, zero denominators) yields neutral values instead of raising.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .models import DailyPerformanceRecord

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
DEFAULT_RISK_FREE_RATE = 0.03
MIN_ANNUALIZATION_DAYS = 5


@dataclass
class DrawdownResult:
    """Largest peak-to-trough decline of a cumulative return path."""

    max_drawdown: float = 0.0  # non-positive, in return points
    peak_index: Optional[int] = None
    trough_index: Optional[int] = None
    peak_date: Optional[date] = None
    trough_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "max_drawdown": self.max_drawdown,
            "peak_index": self.peak_index,
            "trough_index": self.trough_index,
            "peak_date": self.peak_date.isoformat() if self.peak_date else None,
            "trough_date": self.trough_date.isoformat() if self.trough_date else None,
        }


@dataclass
class DayProfitLossMetrics:
    """Average winning day versus average losing day."""

    profit_loss_ratio: float = 0.0
    winning_days_count: int = 0
    losing_days_count: int = 0


def running_drawdown(values: Sequence[float]) -> Tuple[float, Optional[int], Optional[int]]:
    """
    Maximum drawdown of a path measured as a difference from its running peak.

    The running peak starts at the first value and only moves on a strictly
    higher value.

    Returns:
        Tuple of (max_drawdown, peak_index, trough_index). Indices are None
        when the path never falls below a prior peak.
    """
    if len(values) == 0:
        return 0.0, None, None

    path = np.asarray(values, dtype=float)
    running_max = np.maximum.accumulate(path)
    drawdowns = path - running_max

    trough_idx = int(np.argmin(drawdowns))
    max_dd = float(drawdowns[trough_idx])
    if max_dd >= 0:
        return 0.0, None, None

    # First occurrence of the peak value before the trough
    peak_idx = int(np.argmax(path[: trough_idx + 1]))
    return max_dd, peak_idx, trough_idx


def calculate_max_drawdown(
    daily_performances: Optional[Sequence[DailyPerformanceRecord]],
) -> DrawdownResult:
    """
    Maximum drawdown on cumulative returns, with the peak and trough dates.

    Works in return points rather than currency: a path going from +5% to
    -2% has a drawdown of -0.07.
    """
    if not daily_performances:
        return DrawdownResult()

    cumulative = [d.cumulative_return for d in daily_performances]
    max_dd, peak_idx, trough_idx = running_drawdown(cumulative)
    if peak_idx is None:
        return DrawdownResult()

    result = DrawdownResult(
        max_drawdown=max_dd,
        peak_index=peak_idx,
        trough_index=trough_idx,
        peak_date=daily_performances[peak_idx].trade_date,
        trough_date=daily_performances[trough_idx].trade_date,
    )
    logger.debug(
        f"Max drawdown {max_dd:.2%} from {result.peak_date} to {result.trough_date}"
    )
    return result


def calculate_sortino_ratio(
    daily_returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Annualized Sortino ratio.

    Downside deviation is the root mean square of the negative returns only.
    Returns 0 when there are no negative returns.
    """
    if len(daily_returns) == 0:
        return 0.0

    returns = np.asarray(daily_returns, dtype=float)
    negative = returns[returns < 0]
    if len(negative) == 0:
        return 0.0

    downside_dev = float(np.sqrt(np.mean(negative ** 2)) * np.sqrt(periods_per_year))
    annualized_mean = float(np.mean(returns) * periods_per_year)

    if downside_dev > 0:
        return (annualized_mean - risk_free_rate) / downside_dev
    return 0.0


def calculate_annual_return(
    total_return: float,
    trading_days: int,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
    min_days: int = MIN_ANNUALIZATION_DAYS,
) -> float:
    """
    Geometric annualization of a total return.

    Args:
        total_return: Total return as a decimal (0.1187 for 11.87%)
        trading_days: Number of trading days the return was earned over
        periods_per_year: Trading days per year
        min_days: Shorter samples are not annualized and return 0

    Returns:
        Annualized return as a decimal
    """
    if not trading_days or trading_days < min_days:
        return 0.0
    if total_return == 0:
        return 0.0
    if total_return <= -1.0:
        return -1.0

    years = trading_days / periods_per_year
    annual_return = (1.0 + total_return) ** (1.0 / years) - 1.0

    logger.debug(
        f"Annual return: total={total_return:.4f}, days={trading_days}, "
        f"years={years:.2f}, annual={annual_return:.2%}"
    )
    return annual_return


def calculate_max_rise(cumulative_returns: Sequence[float]) -> float:
    """Highest cumulative return reached, floored at 0."""
    if len(cumulative_returns) == 0:
        return 0.0
    return max(float(np.max(cumulative_returns)), 0.0)


def calculate_daily_trade_rate(total_trades: int, trading_days: int) -> float:
    """Average number of trades per trading day."""
    if not trading_days:
        return 0.0
    return total_trades / trading_days


def calculate_daily_win_rate(daily_returns: Sequence[float]) -> float:
    """Fraction of days with a strictly positive return; flat days count as days."""
    if len(daily_returns) == 0:
        return 0.0
    winning = sum(1 for r in daily_returns if r > 0)
    return winning / len(daily_returns)


def calculate_profit_loss_ratio(daily_returns: Sequence[float]) -> DayProfitLossMetrics:
    """
    Average winning-day return over the magnitude of the average losing day.

    The ratio is ``math.inf`` when there are winning days but no losing days.
    """
    wins = [r for r in daily_returns if r > 0]
    losses = [r for r in daily_returns if r < 0]

    if wins and losses:
        ratio = float(np.mean(wins)) / abs(float(np.mean(losses)))
    elif wins:
        ratio = math.inf
    else:
        ratio = 0.0

    return DayProfitLossMetrics(
        profit_loss_ratio=ratio,
        winning_days_count=len(wins),
        losing_days_count=len(losses),
    )
