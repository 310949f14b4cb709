"""
Analytics Engine.

Turns a strategy's daily performance series, its transactions and an
optional benchmark series into dashboard metrics:

- **Trade Attribution**: FIFO round-trip matching and trade-level win rate
- **Daily-Series Statistics**: drawdown, Sortino, annualized return, max rise,
  trade rate, day-level win rate and profit/loss ratio
- **Benchmark-Relative Statistics**: CAPM alpha/beta, information ratio,
  excess return, benchmark volatility, excess-return drawdown
- **Alignment**: date pairing and forward-filled chart series
- **Orchestrator**: ``calculate_all_metrics`` producing one ``MetricsResult``

Example:
    >>> from qmt_analytics.analytics import calculate_all_metrics
    >>> result = calculate_all_metrics(performance, benchmark, transactions)
    >>> result.max_drawdown, result.trade_win_rate
"""

from .alignment import (
    benchmark_levels,
    build_comparison_frame,
    decimal_to_percent,
    forward_fill_benchmark,
    pair_returns_by_date,
    percent_to_decimal,
)
from .benchmark_metrics import (
    AlphaBeta,
    calculate_alpha_beta,
    calculate_avg_daily_excess_return,
    calculate_benchmark_return,
    calculate_benchmark_volatility,
    calculate_excess_return,
    calculate_excess_return_max_drawdown,
    calculate_information_ratio,
)
from .models import (
    BenchmarkBar,
    BenchmarkData,
    DailyPerformanceRecord,
    PerformanceData,
    RoundTrip,
    TradeAction,
    Transaction,
)
from .orchestrator import MetricsResult, calculate_all_metrics
from .performance_metrics import (
    DayProfitLossMetrics,
    DrawdownResult,
    calculate_annual_return,
    calculate_daily_trade_rate,
    calculate_daily_win_rate,
    calculate_max_drawdown,
    calculate_max_rise,
    calculate_profit_loss_ratio,
    calculate_sortino_ratio,
    running_drawdown,
)
from .trade_attribution import (
    TradeWinRateMetrics,
    calculate_trade_win_rate,
    match_round_trips,
    win_lose_ratio,
)

__all__ = [
    # Models
    "BenchmarkBar",
    "BenchmarkData",
    "DailyPerformanceRecord",
    "PerformanceData",
    "RoundTrip",
    "TradeAction",
    "Transaction",
    # Trade attribution
    "TradeWinRateMetrics",
    "calculate_trade_win_rate",
    "match_round_trips",
    "win_lose_ratio",
    # Daily series
    "DayProfitLossMetrics",
    "DrawdownResult",
    "calculate_annual_return",
    "calculate_daily_trade_rate",
    "calculate_daily_win_rate",
    "calculate_max_drawdown",
    "calculate_max_rise",
    "calculate_profit_loss_ratio",
    "calculate_sortino_ratio",
    "running_drawdown",
    # Benchmark
    "AlphaBeta",
    "calculate_alpha_beta",
    "calculate_avg_daily_excess_return",
    "calculate_benchmark_return",
    "calculate_benchmark_volatility",
    "calculate_excess_return",
    "calculate_excess_return_max_drawdown",
    "calculate_information_ratio",
    # Alignment
    "benchmark_levels",
    "build_comparison_frame",
    "decimal_to_percent",
    "forward_fill_benchmark",
    "pair_returns_by_date",
    "percent_to_decimal",
    # Orchestrator
    "MetricsResult",
    "calculate_all_metrics",
]
