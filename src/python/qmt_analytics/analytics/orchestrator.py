"""
Single entry point combining all dashboard metrics.

``calculate_all_metrics`` accepts either typed records or the raw JSON
payloads returned by the trading backend, resolves them once, and always
returns a structurally complete ``MetricsResult``: every numeric field is
set and missing inputs produce zeros rather than errors.

Example:
    >>> result = calculate_all_metrics(performance_json, benchmark_json, transactions_json)
    >>> print(result.summary())
    >>> payload = result.to_dict()  # keys consumed by the dashboard widgets
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from ..config import AnalyticsConfig
from .alignment import pair_returns_by_date
from .benchmark_metrics import (
    calculate_alpha_beta,
    calculate_avg_daily_excess_return,
    calculate_benchmark_return,
    calculate_benchmark_volatility,
    calculate_excess_return,
    calculate_excess_return_max_drawdown,
    calculate_information_ratio,
)
from .models import BenchmarkData, PerformanceData, Transaction, parse_rows
from .performance_metrics import (
    calculate_annual_return,
    calculate_daily_trade_rate,
    calculate_daily_win_rate,
    calculate_max_drawdown,
    calculate_max_rise,
    calculate_profit_loss_ratio,
    calculate_sortino_ratio,
)
from .trade_attribution import calculate_trade_win_rate, win_lose_ratio

logger = logging.getLogger(__name__)

PerformanceInput = Optional[Union[PerformanceData, Dict[str, Any]]]
BenchmarkInput = Optional[Union[BenchmarkData, Dict[str, Any]]]
TransactionsInput = Optional[Iterable[Union[Transaction, Dict[str, Any]]]]


def _json_safe(value: Any) -> Any:
    """Map non-finite floats to values strict JSON can carry."""
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return None
        return "Infinity" if value > 0 else "-Infinity"
    return value


@dataclass
class MetricsResult:
    """
    Aggregated dashboard metrics.

    Return-like fields are decimal fractions. ``win_rate`` is the day-level
    win rate; the round-trip win rate is ``trade_win_rate``.
    """

    # Benchmark-relative
    alpha: float = 0.0
    beta: float = 0.0
    information_ratio: float = 0.0
    benchmark_return: float = 0.0
    excess_return: float = 0.0
    avg_daily_excess_return: float = 0.0
    benchmark_volatility: float = 0.0
    excess_return_max_drawdown: float = 0.0

    # Daily series
    max_drawdown: float = 0.0
    max_drawdown_peak_date: Optional[date] = None
    max_drawdown_trough_date: Optional[date] = None
    sortino: float = 0.0
    annual_return: float = 0.0
    max_rise: float = 0.0
    daily_trade_rate: float = 0.0
    daily_win_rate: float = 0.0
    profit_loss_ratio: float = 0.0
    winning_days_count: int = 0
    losing_days_count: int = 0

    # Round trips
    trade_win_rate: float = 0.0
    winning_trades_count: int = 0
    losing_trades_count: int = 0
    trade_win_lose_ratio: float = 0.0

    @property
    def win_rate(self) -> float:
        """Alias of the day-level win rate."""
        return self.daily_win_rate

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dashboard payload."""
        return {
            "alpha": self.alpha,
            "beta": self.beta,
            "informationRatio": self.information_ratio,
            "benchmarkReturn": self.benchmark_return,
            "excessReturn": self.excess_return,
            "avgDailyExcessReturn": self.avg_daily_excess_return,
            "benchmarkVolatility": self.benchmark_volatility,
            "excessReturnMaxDrawdown": self.excess_return_max_drawdown,
            "maxDrawdown": self.max_drawdown,
            "maxDrawdownPeakDate": (
                self.max_drawdown_peak_date.isoformat() if self.max_drawdown_peak_date else None
            ),
            "maxDrawdownTroughDate": (
                self.max_drawdown_trough_date.isoformat() if self.max_drawdown_trough_date else None
            ),
            "sortino": self.sortino,
            "annualReturn": self.annual_return,
            "maxRise": self.max_rise,
            "dailyTradeRate": self.daily_trade_rate,
            "dailyWinRate": self.daily_win_rate,
            "winRate": self.win_rate,
            "tradeWinRate": self.trade_win_rate,
            "profitLossRatio": self.profit_loss_ratio,
            "winningDaysCount": self.winning_days_count,
            "losingDaysCount": self.losing_days_count,
            "winningTradesCount": self.winning_trades_count,
            "losingTradesCount": self.losing_trades_count,
            "tradeWinLoseRatio": self.trade_win_lose_ratio,
        }

    def to_json(self, **kwargs) -> str:
        """
        Serialize the dashboard payload as strict JSON.

        ``to_dict`` keeps ``math.inf`` for an unbounded profit/loss ratio.
        JSON has no infinity, so it is written as the string ``"Infinity"``
        (``Number("Infinity")`` on the dashboard side); NaN becomes null.
        """
        payload = {key: _json_safe(value) for key, value in self.to_dict().items()}
        return json.dumps(payload, allow_nan=False, **kwargs)

    def summary(self) -> str:
        """Generate summary string."""
        if self.max_drawdown_peak_date and self.max_drawdown_trough_date:
            dd_period = f"{self.max_drawdown_peak_date} to {self.max_drawdown_trough_date}"
        else:
            dd_period = "n/a"

        return f"""
================================================================================
                              STRATEGY METRICS
================================================================================
RETURNS
-------
Annualized Return:   {self.annual_return * 100:>8.2f}%
Max Rise:            {self.max_rise * 100:>8.2f}%
Sortino Ratio:       {self.sortino:>8.3f}

DRAWDOWN
--------
Max Drawdown:        {self.max_drawdown * 100:>8.2f}%
Period:              {dd_period}

BENCHMARK
---------
Benchmark Return:    {self.benchmark_return * 100:>8.2f}%
Excess Return:       {self.excess_return * 100:>8.2f}%
Avg Daily Excess:    {self.avg_daily_excess_return * 100:>8.3f}%
Benchmark Vol.:      {self.benchmark_volatility * 100:>8.2f}%
Excess Max DD:       {self.excess_return_max_drawdown * 100:>8.2f}%
Alpha:               {self.alpha:>8.3f}
Beta:                {self.beta:>8.3f}
Information Ratio:   {self.information_ratio:>8.3f}

DAILY STATISTICS
----------------
Daily Win Rate:      {self.daily_win_rate * 100:>8.1f}%
Winning / Losing:    {self.winning_days_count:>4} / {self.losing_days_count:<4}
Profit/Loss Ratio:   {self.profit_loss_ratio:>8.2f}
Daily Trade Rate:    {self.daily_trade_rate:>8.2f}

ROUND TRIPS
-----------
Trade Win Rate:      {self.trade_win_rate * 100:>8.1f}%
Winning / Losing:    {self.winning_trades_count:>4} / {self.losing_trades_count:<4}
Win/Lose Ratio:      {self.trade_win_lose_ratio:>8.2f}
================================================================================
"""


def coerce_performance(performance: PerformanceInput) -> Optional[PerformanceData]:
    """Resolve a performance payload into a typed record."""
    if performance is None or isinstance(performance, PerformanceData):
        return performance
    return PerformanceData.from_dict(performance, skip_invalid=True)


def coerce_benchmark(benchmark_data: BenchmarkInput) -> Optional[BenchmarkData]:
    """Resolve a benchmark payload; a payload without a ``data`` array is treated as absent."""
    if benchmark_data is None or isinstance(benchmark_data, BenchmarkData):
        return benchmark_data
    if benchmark_data.get("data") is None:
        return None
    return BenchmarkData.from_dict(benchmark_data, skip_invalid=True)


def coerce_transactions(transactions: TransactionsInput) -> List[Transaction]:
    """Resolve transactions, skipping entries that cannot be parsed."""
    return parse_rows(transactions, Transaction, "transaction", skip_invalid=True)


def calculate_all_metrics(
    performance: PerformanceInput,
    benchmark_data: BenchmarkInput = None,
    transactions: TransactionsInput = None,
    config: Optional[AnalyticsConfig] = None,
) -> MetricsResult:
    """
    Calculate every dashboard metric.

    Args:
        performance: Strategy performance (``daily_performances``,
            percentage-scaled ``total_return``, ``total_trades``)
        benchmark_data: Benchmark series with a ``data`` list of daily bars
        transactions: Executed fills
        config: Analytics parameters; defaults when omitted

    Returns:
        Complete MetricsResult. With no performance every field is zero.
    """
    if performance is None:
        return MetricsResult()

    config = config or AnalyticsConfig()
    perf = coerce_performance(performance)
    benchmark = coerce_benchmark(benchmark_data)
    txs = coerce_transactions(transactions)

    result = MetricsResult()
    records = perf.daily_performances

    if records:
        cumulative_returns = [d.cumulative_return for d in records]
        daily_returns = [d.daily_return for d in records]
        trading_days = len(records)
        total_trades = perf.total_trades if perf.total_trades is not None else len(txs)

        result.max_rise = calculate_max_rise(cumulative_returns)
        result.daily_trade_rate = calculate_daily_trade_rate(total_trades, trading_days)
        result.annual_return = calculate_annual_return(
            perf.total_return_decimal,
            trading_days,
            periods_per_year=config.trading_days_per_year,
            min_days=config.min_annualization_days,
        )

        drawdown = calculate_max_drawdown(records)
        result.max_drawdown = drawdown.max_drawdown
        result.max_drawdown_peak_date = drawdown.peak_date
        result.max_drawdown_trough_date = drawdown.trough_date

        result.sortino = calculate_sortino_ratio(
            daily_returns,
            risk_free_rate=config.risk_free_rate,
            periods_per_year=config.trading_days_per_year,
        )
        result.daily_win_rate = calculate_daily_win_rate(daily_returns)

        pl = calculate_profit_loss_ratio(daily_returns)
        result.profit_loss_ratio = pl.profit_loss_ratio
        result.winning_days_count = pl.winning_days_count
        result.losing_days_count = pl.losing_days_count

    trade_metrics = calculate_trade_win_rate(txs)
    result.trade_win_rate = trade_metrics.win_rate
    result.winning_trades_count = trade_metrics.winning_trades_count
    result.losing_trades_count = trade_metrics.losing_trades_count
    result.trade_win_lose_ratio = win_lose_ratio(
        trade_metrics.winning_trades_count, trade_metrics.losing_trades_count
    )

    if benchmark is not None:
        _apply_benchmark_metrics(result, perf, benchmark, config)

    logger.debug(
        f"Metrics for {perf.strategy_id or 'strategy'}: {len(records)} days, "
        f"{len(txs)} transactions, benchmark={'yes' if benchmark is not None else 'no'}"
    )
    return result


def _apply_benchmark_metrics(
    result: MetricsResult,
    perf: PerformanceData,
    benchmark: BenchmarkData,
    config: AnalyticsConfig,
) -> None:
    """Fill the benchmark-relative fields of ``result`` in place."""
    strategy_returns, paired_benchmark = pair_returns_by_date(
        perf.daily_performances, benchmark.data
    )
    total_strategy_return = perf.total_return_decimal

    result.benchmark_return = calculate_benchmark_return(benchmark.daily_returns)

    alpha_beta = calculate_alpha_beta(
        strategy_returns,
        paired_benchmark,
        total_strategy_return,
        result.benchmark_return,
        risk_free_rate=config.risk_free_rate,
        min_observations=config.min_paired_observations,
    )
    result.alpha = alpha_beta.alpha
    result.beta = alpha_beta.beta

    result.information_ratio = calculate_information_ratio(
        strategy_returns,
        paired_benchmark,
        periods_per_year=config.trading_days_per_year,
        min_observations=config.min_paired_observations,
    )
    result.excess_return = calculate_excess_return(total_strategy_return, result.benchmark_return)
    result.avg_daily_excess_return = calculate_avg_daily_excess_return(
        strategy_returns, paired_benchmark
    )
    result.benchmark_volatility = calculate_benchmark_volatility(
        benchmark.daily_returns, periods_per_year=config.trading_days_per_year
    )
    result.excess_return_max_drawdown = calculate_excess_return_max_drawdown(
        strategy_returns, paired_benchmark
    )
