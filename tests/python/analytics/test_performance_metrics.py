"""
Tests for daily-series statistics.
"""

import math
from datetime import date

import numpy as np
import pytest

from qmt_analytics.analytics import (
    DailyPerformanceRecord,
    calculate_annual_return,
    calculate_daily_trade_rate,
    calculate_daily_win_rate,
    calculate_max_drawdown,
    calculate_max_rise,
    calculate_profit_loss_ratio,
    calculate_sortino_ratio,
    running_drawdown,
)


def _records_from_cumulative(cumulative):
    return [
        DailyPerformanceRecord(trade_date=date(2024, 1, 1 + i), cumulative_return=c)
        for i, c in enumerate(cumulative)
    ]


class TestMaxDrawdown:
    """Tests for drawdown on cumulative returns."""

    def test_reference_path(self):
        """[0, 0.05, -0.02, 0.03] falls 7 points from index 1 to index 2."""
        records = _records_from_cumulative([0.0, 0.05, -0.02, 0.03])
        result = calculate_max_drawdown(records)

        assert result.max_drawdown == pytest.approx(-0.07)
        assert result.peak_index == 1
        assert result.trough_index == 2
        assert result.peak_date == date(2024, 1, 2)
        assert result.trough_date == date(2024, 1, 3)

    def test_monotonic_path_has_no_drawdown(self):
        """Non-decreasing path: zero drawdown and no dates."""
        result = calculate_max_drawdown(_records_from_cumulative([0.0, 0.01, 0.01, 0.03]))
        assert result.max_drawdown == 0.0
        assert result.peak_date is None
        assert result.trough_date is None

    def test_empty(self):
        result = calculate_max_drawdown([])
        assert result.max_drawdown == 0.0
        assert result.peak_date is None

    def test_later_peak_replaces_earlier(self):
        """The deepest fall is measured from the most recent peak."""
        path = [0.0, 0.10, 0.05, 0.20, 0.02, 0.15]
        result = calculate_max_drawdown(_records_from_cumulative(path))

        assert result.max_drawdown == pytest.approx(-0.18)
        assert result.peak_index == 3
        assert result.trough_index == 4

    def test_drawdown_from_first_day(self):
        """The running peak starts at the first value, not zero."""
        max_dd, peak, trough = running_drawdown([-0.01, -0.03, -0.02])
        assert max_dd == pytest.approx(-0.02)
        assert (peak, trough) == (0, 1)

    def test_drawdown_never_positive(self, sample_performance):
        result = calculate_max_drawdown(sample_performance.daily_performances)
        assert result.max_drawdown <= 0.0

    def test_to_dict_dates_are_iso(self):
        result = calculate_max_drawdown(_records_from_cumulative([0.0, 0.05, -0.02]))
        data = result.to_dict()
        assert data["peak_date"] == "2024-01-02"
        assert data["trough_date"] == "2024-01-03"


class TestSortino:
    """Tests for the Sortino ratio."""

    def test_known_value(self):
        """Downside deviation is the RMS of negative returns only."""
        returns = [0.02, -0.01, 0.03, -0.02]
        downside = math.sqrt((0.01 ** 2 + 0.02 ** 2) / 2) * math.sqrt(252)
        annual_mean = np.mean(returns) * 252
        expected = (annual_mean - 0.03) / downside

        assert calculate_sortino_ratio(returns) == pytest.approx(expected)

    def test_no_negative_returns(self):
        assert calculate_sortino_ratio([0.01, 0.0, 0.02]) == 0.0

    def test_empty(self):
        assert calculate_sortino_ratio([]) == 0.0

    def test_risk_free_rate(self):
        """A higher risk-free rate lowers the ratio."""
        returns = [0.02, -0.01, 0.03, -0.02]
        assert calculate_sortino_ratio(returns, risk_free_rate=0.05) < calculate_sortino_ratio(
            returns, risk_free_rate=0.0
        )


class TestAnnualReturn:
    """Tests for geometric annualization."""

    def test_full_year_is_unchanged(self):
        assert calculate_annual_return(0.1187, 252) == pytest.approx(0.1187)

    def test_half_year(self):
        assert calculate_annual_return(0.05, 126) == pytest.approx(1.05 ** 2 - 1)

    def test_short_sample_not_annualized(self):
        """Fewer than five days returns 0."""
        assert calculate_annual_return(0.05, 4) == 0.0
        assert calculate_annual_return(0.05, 0) == 0.0

    def test_zero_return(self):
        assert calculate_annual_return(0.0, 100) == 0.0

    def test_total_loss(self):
        assert calculate_annual_return(-1.0, 100) == -1.0


class TestSimpleDailyStatistics:
    """Tests for max rise, trade rate, win rate and profit/loss ratio."""

    def test_max_rise(self):
        assert calculate_max_rise([0.01, 0.08, 0.03]) == pytest.approx(0.08)

    def test_max_rise_never_positive(self):
        assert calculate_max_rise([-0.01, -0.05]) == 0.0
        assert calculate_max_rise([]) == 0.0

    def test_daily_trade_rate(self):
        assert calculate_daily_trade_rate(30, 20) == pytest.approx(1.5)
        assert calculate_daily_trade_rate(30, 0) == 0.0

    def test_daily_win_rate_counts_flat_days(self):
        """Flat days count in the denominator but not as wins."""
        assert calculate_daily_win_rate([0.01, -0.02, 0.0, 0.03]) == pytest.approx(0.5)

    def test_daily_win_rate_empty(self):
        assert calculate_daily_win_rate([]) == 0.0

    def test_profit_loss_ratio(self):
        metrics = calculate_profit_loss_ratio([0.02, 0.04, -0.01, 0.0])
        assert metrics.profit_loss_ratio == pytest.approx(0.03 / 0.01)
        assert metrics.winning_days_count == 2
        assert metrics.losing_days_count == 1

    def test_profit_loss_ratio_without_losses_is_infinite(self):
        metrics = calculate_profit_loss_ratio([0.01, 0.02])
        assert math.isinf(metrics.profit_loss_ratio)
        assert metrics.losing_days_count == 0

    def test_profit_loss_ratio_no_winners(self):
        assert calculate_profit_loss_ratio([-0.01, 0.0]).profit_loss_ratio == 0.0
        assert calculate_profit_loss_ratio([]).profit_loss_ratio == 0.0
