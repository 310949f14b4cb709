"""
Strategy statistics relative to a benchmark.

Functions taking a strategy and a benchmark return sequence treat them as
already paired day by day and use the first ``min(len)`` elements of each.
Pair the series by date with ``alignment.pair_returns_by_date`` first.

Variances and standard deviations are population statistics (divide by N).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .performance_metrics import (
    DEFAULT_RISK_FREE_RATE,
    TRADING_DAYS_PER_YEAR,
    running_drawdown,
)

logger = logging.getLogger(__name__)

MIN_PAIRED_OBSERVATIONS = 10


@dataclass
class AlphaBeta:
    """CAPM regression coefficients."""

    alpha: float = 0.0
    beta: float = 0.0


def _paired(
    strategy_returns: Sequence[float],
    benchmark_returns: Sequence[float],
) -> Tuple[np.ndarray, np.ndarray]:
    n = min(len(strategy_returns), len(benchmark_returns))
    return (
        np.asarray(strategy_returns[:n], dtype=float),
        np.asarray(benchmark_returns[:n], dtype=float),
    )


def calculate_alpha_beta(
    strategy_returns: Sequence[float],
    benchmark_returns: Sequence[float],
    total_strategy_return: float,
    total_benchmark_return: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    min_observations: int = MIN_PAIRED_OBSERVATIONS,
) -> AlphaBeta:
    """
    Beta from daily returns, alpha from total returns (full CAPM form).

        beta  = cov(strategy, benchmark) / var(benchmark)
        alpha = R_s - [rf + beta * (R_b - rf)]

    Args:
        strategy_returns: Strategy daily returns
        benchmark_returns: Benchmark daily returns paired with the above
        total_strategy_return: Strategy total return (decimal)
        total_benchmark_return: Benchmark total return (decimal)
        risk_free_rate: Annual risk-free rate
        min_observations: Minimum pairs; fewer gives alpha = beta = 0
    """
    strategy, benchmark = _paired(strategy_returns, benchmark_returns)
    if len(strategy) < min_observations:
        return AlphaBeta()

    strategy_diff = strategy - strategy.mean()
    benchmark_diff = benchmark - benchmark.mean()
    covariance = float(np.mean(strategy_diff * benchmark_diff))
    benchmark_variance = float(np.mean(benchmark_diff ** 2))

    beta = covariance / benchmark_variance if benchmark_variance > 0 else 0.0
    expected_return = risk_free_rate + beta * (total_benchmark_return - risk_free_rate)
    alpha = total_strategy_return - expected_return

    logger.debug(
        f"CAPM: strategy={total_strategy_return:.2%}, benchmark={total_benchmark_return:.2%}, "
        f"beta={beta:.3f}, rf={risk_free_rate:.1%}, expected={expected_return:.2%}, "
        f"alpha={alpha:.3f}"
    )
    return AlphaBeta(alpha=alpha, beta=beta)


def calculate_information_ratio(
    strategy_returns: Sequence[float],
    benchmark_returns: Sequence[float],
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
    min_observations: int = MIN_PAIRED_OBSERVATIONS,
) -> float:
    """Annualized mean daily excess return over its standard deviation."""
    strategy, benchmark = _paired(strategy_returns, benchmark_returns)
    if len(strategy) < min_observations:
        return 0.0

    excess = strategy - benchmark
    std = float(np.std(excess))
    if std == 0:
        return 0.0
    return float(np.mean(excess) / std * np.sqrt(periods_per_year))


def calculate_benchmark_return(benchmark_returns: Sequence[float]) -> float:
    """Compounded total return of the benchmark."""
    if len(benchmark_returns) == 0:
        return 0.0
    return float(np.prod(1.0 + np.asarray(benchmark_returns, dtype=float)) - 1.0)


def calculate_excess_return(strategy_return: float, benchmark_return: float) -> float:
    return strategy_return - benchmark_return


def calculate_avg_daily_excess_return(
    strategy_returns: Sequence[float],
    benchmark_returns: Sequence[float],
) -> float:
    strategy, benchmark = _paired(strategy_returns, benchmark_returns)
    if len(strategy) == 0:
        return 0.0
    return float(np.mean(strategy - benchmark))


def calculate_benchmark_volatility(
    benchmark_returns: Sequence[float],
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """Annualized volatility of benchmark daily returns."""
    if len(benchmark_returns) == 0:
        return 0.0
    return float(np.std(np.asarray(benchmark_returns, dtype=float)) * np.sqrt(periods_per_year))


def calculate_excess_return_max_drawdown(
    strategy_returns: Sequence[float],
    benchmark_returns: Sequence[float],
) -> float:
    """
    Maximum drawdown of the running sum of daily excess returns.

    The excess path is additive rather than compounded.
    """
    strategy, benchmark = _paired(strategy_returns, benchmark_returns)
    if len(strategy) == 0:
        return 0.0

    cumulative_excess = np.cumsum(strategy - benchmark)
    max_dd, _, _ = running_drawdown(cumulative_excess)
    return max_dd
