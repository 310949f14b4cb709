"""
Typed records for the analytics engine.

The trading backend returns loosely shaped JSON: fields may be missing,
numbers may arrive as strings and dates as ISO text. Every record here has a
``from_dict`` constructor that resolves those variations once, so the
statistics code downstream only ever sees typed values with defined defaults.

Unit conventions:
    - ``daily_return`` / ``cumulative_return`` / benchmark ``daily_return``
      are decimal fractions (0.012 = 1.2%).
    - ``PerformanceData.total_return`` is percentage-scaled (11.87 = 11.87%),
      exactly as the backend reports it. Use ``total_return_decimal`` in any
      compounding formula.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TradeAction(Enum):
    """Transaction side."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: Any) -> "TradeAction":
        """Parse a case-insensitive action string."""
        if isinstance(value, TradeAction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown transaction action: {value!r}") from None


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON scalar to float, falling back to ``default``."""
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def to_optional_float(value: Any) -> Optional[float]:
    """Coerce to float, keeping ``None`` for missing values."""
    if value is None or value == "":
        return None
    return to_float(value)


def to_date(value: Any) -> Optional[date]:
    """Parse a date from a ``date``, ``datetime`` or ISO string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date()
    return date_parser.parse(str(value)).date()


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse a timestamp, normalizing aware values to naive UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif hasattr(value, "to_pydatetime"):
        parsed = value.to_pydatetime()
    else:
        parsed = date_parser.parse(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_rows(
    rows: Optional[Iterable[Any]],
    model: Type[T],
    kind: str,
    skip_invalid: bool = False,
) -> List[T]:
    """
    Parse JSON rows into ``model`` records via ``model.from_dict``.

    Args:
        rows: Raw rows (may be None); ``model`` instances are kept as-is
        model: Record type, e.g. ``Transaction``
        kind: Row description used in log messages
        skip_invalid: Log and drop rows that fail to parse instead of raising

    Raises:
        ValueError: If a row is invalid and ``skip_invalid`` is False
    """
    parsed: List[T] = []
    for i, row in enumerate(rows or []):
        if isinstance(row, model):
            parsed.append(row)
            continue
        try:
            if not isinstance(row, dict):
                raise ValueError(f"expected an object, got {type(row).__name__}")
            parsed.append(model.from_dict(row))
        except (ValueError, OverflowError) as e:
            if not skip_invalid:
                raise
            row_id = row.get("id", i) if isinstance(row, dict) else i
            logger.warning(f"Skipping {kind} {row_id}: {e}")
    return parsed


@dataclass(frozen=True)
class DailyPerformanceRecord:
    """One trading day of a strategy run."""

    trade_date: date
    daily_return: float = 0.0
    cumulative_return: float = 0.0
    cash: float = 0.0
    daily_cash_change: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyPerformanceRecord":
        trade_date = to_date(data.get("trade_date"))
        if trade_date is None:
            raise ValueError("Daily performance record is missing trade_date")
        return cls(
            trade_date=trade_date,
            daily_return=to_float(data.get("daily_return")),
            cumulative_return=to_float(data.get("cumulative_return")),
            cash=to_float(data.get("cash")),
            daily_cash_change=to_optional_float(data.get("daily_cash_change")),
        )


@dataclass(frozen=True)
class Transaction:
    """A single executed fill."""

    code: str
    action: TradeAction
    quantity: float
    price: float
    net_amount: float
    amount: float = 0.0
    commission: Optional[float] = None
    execution_datetime: Optional[datetime] = None
    trade_date: Optional[date] = None
    id: Optional[Any] = None

    @property
    def sort_key(self) -> datetime:
        """Chronological key; undated fills sort first."""
        return self.timestamp or datetime.min

    @property
    def timestamp(self) -> Optional[datetime]:
        """Execution time, else midnight of the trade date."""
        if self.execution_datetime is not None:
            return self.execution_datetime
        if self.trade_date is not None:
            return datetime(self.trade_date.year, self.trade_date.month, self.trade_date.day)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        quantity = to_float(data.get("quantity"))
        price = to_float(data.get("price"))
        amount = to_float(data.get("amount"), default=quantity * price)
        return cls(
            code=str(data.get("code", "")),
            action=TradeAction.parse(data.get("action")),
            quantity=quantity,
            price=price,
            amount=amount,
            net_amount=abs(to_float(data.get("net_amount"), default=amount)),
            commission=to_optional_float(data.get("commission")),
            execution_datetime=to_datetime(data.get("execution_datetime")),
            trade_date=to_date(data.get("trade_date")),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class BenchmarkBar:
    """One benchmark trading day."""

    date: date
    daily_return: float = 0.0
    close: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkBar":
        bar_date = to_date(data.get("date", data.get("trade_date")))
        if bar_date is None:
            raise ValueError("Benchmark bar is missing date")
        return cls(
            date=bar_date,
            daily_return=to_float(data.get("daily_return")),
            close=to_optional_float(data.get("close")),
        )


@dataclass(frozen=True)
class RoundTrip:
    """A SELL matched against one or more earlier BUY lots."""

    code: str
    pnl: float
    quantity: float
    sell_date: Optional[datetime] = None

    @property
    def is_win(self) -> bool:
        # Break-even counts as a loss
        return self.pnl > 0


@dataclass
class PerformanceData:
    """Performance payload for one strategy run."""

    daily_performances: List[DailyPerformanceRecord] = field(default_factory=list)
    total_return: float = 0.0  # percentage-scaled
    total_trades: Optional[int] = None
    strategy_id: Optional[str] = None

    @property
    def total_return_decimal(self) -> float:
        """Total return as a decimal fraction."""
        return self.total_return / 100.0

    @property
    def trading_days(self) -> int:
        return len(self.daily_performances)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], skip_invalid: bool = False) -> "PerformanceData":
        records = parse_rows(
            data.get("daily_performances"),
            DailyPerformanceRecord,
            "daily performance record",
            skip_invalid=skip_invalid,
        )
        records.sort(key=lambda r: r.trade_date)

        total_return = to_optional_float(data.get("total_return"))
        if total_return is None:
            # Derive from the series; cumulative_return is decimal
            total_return = records[-1].cumulative_return * 100.0 if records else 0.0

        total_trades = data.get("total_trades")
        return cls(
            daily_performances=records,
            total_return=total_return,
            total_trades=int(to_float(total_trades)) if total_trades is not None else None,
            strategy_id=data.get("strategy_id", data.get("strategy_name")),
        )


@dataclass
class BenchmarkData:
    """Benchmark daily series."""

    data: List[BenchmarkBar] = field(default_factory=list)
    code: Optional[str] = None

    @property
    def daily_returns(self) -> List[float]:
        return [bar.daily_return for bar in self.data]

    @classmethod
    def from_dict(cls, data: Dict[str, Any], skip_invalid: bool = False) -> "BenchmarkData":
        bars = parse_rows(
            data.get("data"), BenchmarkBar, "benchmark bar", skip_invalid=skip_invalid
        )
        bars.sort(key=lambda b: b.date)
        return cls(data=bars, code=data.get("code", data.get("benchmark_code")))
