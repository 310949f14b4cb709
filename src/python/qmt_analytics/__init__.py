"""
QMT Analytics

Performance analytics for the QMT trading dashboard. Turns the daily
performance series, transactions and benchmark bars served by the trading
backend into the metrics the dashboard displays.

Core components:
- FIFO round-trip matching and trade-level win rate
- Drawdown, Sortino, annualized return and day-level statistics
- CAPM alpha/beta, information ratio and other benchmark-relative metrics
- Date alignment with forward-filled benchmark series for charts
- Backend REST client and command line interface

Usage:
    # As a library
    from qmt_analytics import calculate_all_metrics
    result = calculate_all_metrics(performance, benchmark, transactions)
    print(result.summary())

    # As a CLI
    $ qmt-analytics metrics --strategy ma_cross --benchmark 000300.SH
"""

__version__ = "1.0.0"
__author__ = "Quantitative Research Team"

from . import analytics
from .analytics import MetricsResult, calculate_all_metrics
from .client import BackendClient, BackendError
from .config import Config, load_config

__all__ = [
    "__version__",
    "analytics",
    "MetricsResult",
    "calculate_all_metrics",
    "BackendClient",
    "BackendError",
    "Config",
    "load_config",
]
