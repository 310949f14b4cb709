"""
Trade-level win/loss attribution.

Transactions are replayed in execution order and every SELL is matched
against the open BUY lots of the same instrument, oldest first (FIFO). Each
matched SELL realizes one round trip whose P&L is the sell proceeds minus
the cost of the lots it closed.

This answers "of realized round trips, how many made money", which is a
different question from the day-level win rate in ``performance_metrics``.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Iterable, List, Optional

from .models import RoundTrip, TradeAction, Transaction

logger = logging.getLogger(__name__)


@dataclass
class _OpenLot:
    """Unmatched remainder of a BUY fill."""

    quantity: float
    price: float
    net_amount: float


@dataclass
class TradeWinRateMetrics:
    """Round-trip win/loss counts."""

    winning_trades_count: int = 0
    losing_trades_count: int = 0
    win_rate: float = 0.0
    profit_loss_ratio: float = 0.0
    total_pnl: float = 0.0

    @property
    def n_round_trips(self) -> int:
        return self.winning_trades_count + self.losing_trades_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "winning_trades_count": self.winning_trades_count,
            "losing_trades_count": self.losing_trades_count,
            "win_rate": self.win_rate,
            "profit_loss_ratio": self.profit_loss_ratio,
            "total_pnl": self.total_pnl,
        }


def win_lose_ratio(wins: int, losses: int) -> float:
    """
    Count ratio of wins to losses.

    With no losses the ratio is reported as the win count itself, and 0 when
    there are no trades at all.
    """
    if losses > 0:
        return wins / losses
    if wins > 0:
        return float(wins)
    return 0.0


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Sort chronologically; equal timestamps keep their input order."""
    return sorted(transactions, key=lambda tx: tx.sort_key)


def match_round_trips(transactions: Optional[Iterable[Transaction]]) -> List[RoundTrip]:
    """
    Match SELLs against earlier BUYs per instrument using FIFO.

    Args:
        transactions: Fills in any order (may be None or empty)

    Returns:
        Round trips in the order their SELL fills occurred
    """
    if not transactions:
        return []

    buy_queues: Dict[str, Deque[_OpenLot]] = defaultdict(deque)
    round_trips: List[RoundTrip] = []

    for tx in sort_transactions(transactions):
        queue = buy_queues[tx.code]

        if tx.action is TradeAction.BUY:
            queue.append(_OpenLot(quantity=tx.quantity, price=tx.price, net_amount=tx.net_amount))
            continue

        remaining = tx.quantity
        total_buy_cost = 0.0
        matched_qty = 0.0

        while remaining > 0 and queue:
            lot = queue[0]
            if lot.quantity <= remaining:
                total_buy_cost += lot.net_amount
                matched_qty += lot.quantity
                remaining -= lot.quantity
                queue.popleft()
            else:
                proportional_cost = (remaining / lot.quantity) * lot.net_amount
                total_buy_cost += proportional_cost
                matched_qty += remaining
                lot.quantity -= remaining
                lot.net_amount -= proportional_cost
                remaining = 0.0

        # No open lot means a short sale, which is not modeled
        if total_buy_cost > 0:
            round_trips.append(
                RoundTrip(
                    code=tx.code,
                    pnl=tx.net_amount - total_buy_cost,
                    quantity=matched_qty,
                    sell_date=tx.timestamp,
                )
            )

    return round_trips


def calculate_trade_win_rate(
    transactions: Optional[Iterable[Transaction]],
) -> TradeWinRateMetrics:
    """
    Calculate round-trip win rate from a transaction list.

    Args:
        transactions: Fills in any order (may be None or empty)

    Returns:
        TradeWinRateMetrics; all zero when nothing was realized
    """
    round_trips = match_round_trips(transactions)
    if not round_trips:
        return TradeWinRateMetrics()

    wins = sum(1 for trip in round_trips if trip.is_win)
    losses = len(round_trips) - wins

    metrics = TradeWinRateMetrics(
        winning_trades_count=wins,
        losing_trades_count=losses,
        win_rate=wins / len(round_trips),
        profit_loss_ratio=win_lose_ratio(wins, losses),
        total_pnl=sum(trip.pnl for trip in round_trips),
    )

    logger.debug(
        f"Trade win rate: {wins} wins / {losses} losses = {metrics.win_rate:.1%}"
    )
    return metrics
