"""
Date alignment of strategy and benchmark series.

Two consumers need the series lined up by date:

    - The benchmark statistics want paired daily returns for the days both
      series traded (inner join).
    - Charts want one benchmark value per strategy day. Missing benchmark
      days take the last known level from the most recent prior date; values
      are never interpolated, zero-filled or recomputed from the first day,
      and only the window where both series overlap is emitted.

Percent scaling for display happens here and nowhere in the statistics.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from .models import BenchmarkBar, DailyPerformanceRecord

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = [
    "date",
    "strategy_return_pct",
    "benchmark_return_pct",
    "excess_return_pct",
]


def percent_to_decimal(value: float) -> float:
    """11.87 -> 0.1187"""
    return value / 100.0


def decimal_to_percent(value: float) -> float:
    """0.1187 -> 11.87"""
    return value * 100.0


def pair_returns_by_date(
    daily_performances: Sequence[DailyPerformanceRecord],
    benchmark_bars: Sequence[BenchmarkBar],
) -> Tuple[List[float], List[float]]:
    """
    Daily returns of both series on the dates they share.

    Returns:
        Tuple of (strategy_returns, benchmark_returns) in strategy date order
    """
    if not daily_performances or not benchmark_bars:
        return [], []

    benchmark_by_date = {bar.date: bar.daily_return for bar in benchmark_bars}
    strategy_returns: List[float] = []
    benchmark_returns: List[float] = []
    for record in daily_performances:
        if record.trade_date in benchmark_by_date:
            strategy_returns.append(record.daily_return)
            benchmark_returns.append(benchmark_by_date[record.trade_date])

    logger.debug(
        f"Paired {len(strategy_returns)} of {len(daily_performances)} strategy days "
        f"with {len(benchmark_bars)} benchmark bars"
    )
    return strategy_returns, benchmark_returns


def benchmark_levels(benchmark_bars: Sequence[BenchmarkBar]) -> pd.Series:
    """
    Benchmark level per date.

    Uses closing prices when every bar has one, otherwise compounds the daily
    returns into an index starting from 1.
    """
    if not benchmark_bars:
        return pd.Series(dtype=float)

    index = pd.DatetimeIndex(pd.to_datetime([bar.date for bar in benchmark_bars]))
    if all(bar.close is not None for bar in benchmark_bars):
        values = np.array([bar.close for bar in benchmark_bars], dtype=float)
    else:
        returns = np.array([bar.daily_return for bar in benchmark_bars], dtype=float)
        values = np.cumprod(1.0 + returns)

    levels = pd.Series(values, index=index, name="benchmark")
    levels = levels[~levels.index.duplicated(keep="last")]
    return levels.sort_index()


def forward_fill_benchmark(
    dates: Sequence,
    benchmark_bars: Sequence[BenchmarkBar],
) -> pd.Series:
    """
    Benchmark level for each requested date inside the overlapping window.

    Args:
        dates: Strategy dates (``date``, ``datetime`` or ISO strings)
        benchmark_bars: Benchmark bars, possibly with gaps

    Returns:
        Series indexed by the requested dates that fall within both series'
        date range; empty when there is no overlap
    """
    levels = benchmark_levels(benchmark_bars)
    if levels.empty or len(dates) == 0:
        return pd.Series(dtype=float, name="benchmark")

    requested = pd.DatetimeIndex(pd.to_datetime(list(dates))).unique().sort_values()
    start = max(requested.min(), levels.index.min())
    end = min(requested.max(), levels.index.max())
    window = requested[(requested >= start) & (requested <= end)]
    if len(window) == 0:
        return pd.Series(dtype=float, name="benchmark")

    filled = levels.reindex(levels.index.union(window)).ffill()
    return filled.loc[window]


def build_comparison_frame(
    daily_performances: Sequence[DailyPerformanceRecord],
    benchmark_bars: Sequence[BenchmarkBar],
) -> pd.DataFrame:
    """
    Chart-ready strategy versus benchmark cumulative returns, in percent.

    The benchmark is rebased to its level on the first date of the
    overlapping window. Without a benchmark, the benchmark columns are NaN
    for every strategy day.
    """
    if not daily_performances:
        return pd.DataFrame(columns=COMPARISON_COLUMNS)

    strategy = pd.Series(
        [decimal_to_percent(d.cumulative_return) for d in daily_performances],
        index=pd.DatetimeIndex(pd.to_datetime([d.trade_date for d in daily_performances])),
    )
    strategy = strategy[~strategy.index.duplicated(keep="last")]

    levels = forward_fill_benchmark(list(strategy.index), benchmark_bars)
    if levels.empty:
        frame = pd.DataFrame({"strategy_return_pct": strategy})
        frame["benchmark_return_pct"] = np.nan
    else:
        rebased = (levels / levels.iloc[0] - 1.0).map(decimal_to_percent)
        frame = pd.DataFrame(
            {
                "strategy_return_pct": strategy.loc[levels.index],
                "benchmark_return_pct": rebased,
            }
        )

    frame["excess_return_pct"] = frame["strategy_return_pct"] - frame["benchmark_return_pct"]
    frame.insert(0, "date", frame.index.date)
    return frame.reset_index(drop=True)
