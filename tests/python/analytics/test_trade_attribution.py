"""
Tests for FIFO round-trip matching and trade-level win rate.
"""

from datetime import datetime, timedelta

import pytest

from qmt_analytics.analytics import (
    TradeAction,
    Transaction,
    calculate_trade_win_rate,
    match_round_trips,
    win_lose_ratio,
)

from conftest import make_transaction

T0 = datetime(2024, 3, 1, 9, 30)


class TestMatchRoundTrips:
    """Tests for match_round_trips."""

    def test_empty_and_none(self):
        """No transactions means no round trips."""
        assert match_round_trips([]) == []
        assert match_round_trips(None) == []

    def test_fifo_partial_lot(self):
        """BUY 100@10, BUY 100@12, SELL 150@15 realizes 2250 - 1600 = 650."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("AAA", "buy", 100, 12.0, T0 + timedelta(minutes=1)),
            make_transaction("AAA", "sell", 150, 15.0, T0 + timedelta(minutes=2)),
        ]
        trips = match_round_trips(txs)

        assert len(trips) == 1
        assert trips[0].pnl == pytest.approx(650.0)
        assert trips[0].quantity == pytest.approx(150.0)
        assert trips[0].is_win

    def test_partial_lot_remainder_used_by_next_sell(self):
        """The shrunken lot keeps its proportional cost for later sells."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("AAA", "buy", 100, 12.0, T0 + timedelta(minutes=1)),
            make_transaction("AAA", "sell", 150, 15.0, T0 + timedelta(minutes=2)),
            make_transaction("AAA", "sell", 50, 11.0, T0 + timedelta(minutes=3)),
        ]
        trips = match_round_trips(txs)

        assert len(trips) == 2
        # Remaining 50 shares cost 600; sold for 550
        assert trips[1].pnl == pytest.approx(-50.0)
        assert not trips[1].is_win

    def test_unsorted_input_is_sorted_by_time(self):
        """A SELL listed before its BUY still matches when executed later."""
        txs = [
            make_transaction("AAA", "sell", 100, 12.0, T0 + timedelta(days=1)),
            make_transaction("AAA", "buy", 100, 10.0, T0),
        ]
        trips = match_round_trips(txs)

        assert len(trips) == 1
        assert trips[0].pnl == pytest.approx(200.0)

    def test_sell_without_buy_is_ignored(self):
        """Short sales produce no round trip."""
        txs = [make_transaction("AAA", "sell", 100, 12.0, T0)]
        assert match_round_trips(txs) == []

    def test_instruments_are_matched_independently(self):
        """A SELL never consumes another instrument's lots."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("BBB", "sell", 100, 12.0, T0 + timedelta(minutes=1)),
        ]
        assert match_round_trips(txs) == []

    def test_open_lots_are_not_realized(self):
        """Unsold BUYs do not create round trips."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("AAA", "buy", 100, 9.0, T0 + timedelta(minutes=1)),
        ]
        assert match_round_trips(txs) == []

    def test_equal_timestamps_keep_input_order(self):
        """Stable sort: a BUY listed first at the same time is matched."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("AAA", "sell", 100, 10.5, T0),
        ]
        trips = match_round_trips(txs)
        assert len(trips) == 1
        assert trips[0].pnl == pytest.approx(50.0)

    def test_trade_date_fallback(self):
        """Fills without execution time sort by trade date."""
        from datetime import date

        txs = [
            Transaction(code="AAA", action=TradeAction.SELL, quantity=10, price=5.0,
                        net_amount=50.0, trade_date=date(2024, 3, 5)),
            Transaction(code="AAA", action=TradeAction.BUY, quantity=10, price=4.0,
                        net_amount=40.0, trade_date=date(2024, 3, 4)),
        ]
        trips = match_round_trips(txs)
        assert len(trips) == 1
        assert trips[0].sell_date == datetime(2024, 3, 5)

    def test_net_amount_includes_costs(self):
        """P&L uses net amounts, so fees can turn a price gain into a loss."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0, net_amount=1005.0),
            make_transaction("AAA", "sell", 100, 10.05, T0 + timedelta(days=1), net_amount=1000.0),
        ]
        trips = match_round_trips(txs)
        assert trips[0].pnl == pytest.approx(-5.0)
        assert not trips[0].is_win


class TestTradeWinRate:
    """Tests for calculate_trade_win_rate."""

    def test_no_transactions(self):
        """Empty input gives all-zero metrics."""
        metrics = calculate_trade_win_rate([])
        assert metrics.winning_trades_count == 0
        assert metrics.losing_trades_count == 0
        assert metrics.win_rate == 0.0
        assert metrics.profit_loss_ratio == 0.0

    def test_sample_transactions(self, sample_transactions):
        """One win, one loss, one open position."""
        metrics = calculate_trade_win_rate(sample_transactions)

        assert metrics.winning_trades_count == 1
        assert metrics.losing_trades_count == 1
        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.profit_loss_ratio == pytest.approx(1.0)
        assert metrics.total_pnl == pytest.approx(100.0 - 200.0)

    def test_break_even_counts_as_loss(self):
        """Zero P&L is a loss."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("AAA", "sell", 100, 10.0, T0 + timedelta(days=1)),
        ]
        metrics = calculate_trade_win_rate(txs)
        assert metrics.winning_trades_count == 0
        assert metrics.losing_trades_count == 1
        assert metrics.win_rate == 0.0

    def test_all_wins_ratio_is_win_count(self):
        """Without losses the ratio equals the number of wins."""
        txs = []
        for i in range(3):
            txs.append(make_transaction("AAA", "buy", 10, 10.0, T0 + timedelta(days=2 * i)))
            txs.append(make_transaction("AAA", "sell", 10, 11.0, T0 + timedelta(days=2 * i + 1)))
        metrics = calculate_trade_win_rate(txs)

        assert metrics.winning_trades_count == 3
        assert metrics.profit_loss_ratio == 3.0
        assert metrics.win_rate == 1.0

    def test_round_trips_bounded_by_matched_sells(self):
        """Wins plus losses never exceed the number of matched SELLs."""
        txs = [
            make_transaction("AAA", "buy", 100, 10.0, T0),
            make_transaction("AAA", "sell", 60, 11.0, T0 + timedelta(days=1)),
            make_transaction("AAA", "sell", 60, 9.0, T0 + timedelta(days=2)),
            make_transaction("AAA", "sell", 60, 12.0, T0 + timedelta(days=3)),
            make_transaction("BBB", "sell", 10, 5.0, T0 + timedelta(days=3)),
        ]
        metrics = calculate_trade_win_rate(txs)
        # Only the first two AAA sells find open lots
        assert metrics.n_round_trips == 2


class TestWinLoseRatio:
    """Tests for win_lose_ratio."""

    @pytest.mark.parametrize(
        "wins,losses,expected",
        [(4, 2, 2.0), (3, 0, 3.0), (0, 0, 0.0), (0, 5, 0.0)],
    )
    def test_ratio(self, wins, losses, expected):
        assert win_lose_ratio(wins, losses) == expected


class TestTradeAction:
    """Tests for TradeAction.parse."""

    def test_case_insensitive(self):
        assert TradeAction.parse(" SELL ") is TradeAction.SELL

    def test_unknown_action_hides_enum_lookup(self):
        with pytest.raises(ValueError, match="Unknown transaction action: 'dividend'") as excinfo:
            TradeAction.parse("dividend")
        assert excinfo.value.__cause__ is None
        assert excinfo.value.__suppress_context__ is True
