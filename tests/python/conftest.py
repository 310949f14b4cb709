"""
Pytest configuration for qmt_analytics tests.
"""

from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from qmt_analytics.analytics import (
    BenchmarkBar,
    BenchmarkData,
    DailyPerformanceRecord,
    PerformanceData,
    TradeAction,
    Transaction,
)


def make_records(daily_returns, start=date(2024, 1, 2)):
    """Build daily performance records with compounded cumulative returns."""
    dates = pd.bdate_range(start, periods=len(daily_returns))
    cumulative = np.cumprod(1.0 + np.asarray(daily_returns, dtype=float)) - 1.0
    return [
        DailyPerformanceRecord(
            trade_date=d.date(),
            daily_return=float(r),
            cumulative_return=float(c),
        )
        for d, r, c in zip(dates, daily_returns, cumulative)
    ]


def make_transaction(code, action, quantity, price, when, net_amount=None):
    """Build a transaction; net amount defaults to quantity * price."""
    return Transaction(
        code=code,
        action=TradeAction(action),
        quantity=quantity,
        price=price,
        amount=quantity * price,
        net_amount=quantity * price if net_amount is None else net_amount,
        execution_datetime=when,
    )


@pytest.fixture
def random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
    return 42


@pytest.fixture
def sample_daily_returns():
    """One year of daily strategy returns."""
    np.random.seed(42)
    return np.random.normal(0.0008, 0.015, 252)


@pytest.fixture
def sample_benchmark_returns(sample_daily_returns):
    """Benchmark returns correlated with the strategy."""
    np.random.seed(7)
    noise = np.random.normal(0.0, 0.008, len(sample_daily_returns))
    return 0.6 * sample_daily_returns + noise


@pytest.fixture
def sample_performance(sample_daily_returns):
    """PerformanceData with percentage-scaled total return."""
    records = make_records(sample_daily_returns)
    return PerformanceData(
        daily_performances=records,
        total_return=records[-1].cumulative_return * 100,
        total_trades=40,
        strategy_id="ma_cross",
    )


@pytest.fixture
def sample_benchmark(sample_performance, sample_benchmark_returns):
    """Benchmark bars on the same dates as the strategy."""
    closes = 3500.0 * np.cumprod(1.0 + sample_benchmark_returns)
    bars = [
        BenchmarkBar(date=rec.trade_date, daily_return=float(r), close=float(c))
        for rec, r, c in zip(sample_performance.daily_performances, sample_benchmark_returns, closes)
    ]
    return BenchmarkData(data=bars, code="000300.SH")


@pytest.fixture
def sample_transactions():
    """Two instruments: one winning and one losing round trip, one open lot."""
    t0 = datetime(2024, 1, 2, 9, 30)
    return [
        make_transaction("600000.SH", "buy", 100, 10.0, t0),
        make_transaction("000001.SZ", "buy", 200, 15.0, t0 + timedelta(minutes=5)),
        make_transaction("600000.SH", "sell", 100, 11.0, t0 + timedelta(days=3)),
        make_transaction("000001.SZ", "sell", 200, 14.0, t0 + timedelta(days=4)),
        make_transaction("600519.SH", "buy", 10, 1700.0, t0 + timedelta(days=5)),
    ]


@pytest.fixture
def performance_payload():
    """Raw performance JSON as served by the backend."""
    return {
        "strategy_name": "ma_cross",
        "total_return": 3.5,
        "total_trades": "6",
        "daily_performances": [
            {"trade_date": "2024-01-02", "daily_return": 0.01, "cumulative_return": 0.01, "cash": 50000},
            {"trade_date": "2024-01-03", "daily_return": "0.02", "cumulative_return": 0.0302},
            {"trade_date": "2024-01-04", "daily_return": -0.015, "cumulative_return": 0.01475},
            {"trade_date": "2024-01-05", "daily_return": 0.0, "cumulative_return": 0.01475},
            {"trade_date": "2024-01-08", "daily_return": 0.02, "cumulative_return": 0.035},
        ],
    }
