"""
DOMAIN MODELS - SIMULATION, PORTFOLIO & RANKING

Immutable structures produced by the simulation engine, the aggregator
and the comparative ranker.
No database access. No market data fetching.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Tuple

from .entities import PriceSource

ZERO = Decimal("0")


def compute_roi(current_value: Decimal, invested: Decimal) -> Decimal:
    if invested <= ZERO:
        return ZERO
    return (current_value - invested) / invested * Decimal("100")


@dataclass(frozen=True)
class SimulationStep:
    """One scheduled purchase and the holdings it leaves behind"""
    date: date
    invested_amount: Decimal
    units_purchased: Decimal
    price_at_purchase: Decimal
    price_source: PriceSource
    cumulative_units: Decimal
    cumulative_invested: Decimal
    current_value: Decimal


@dataclass(frozen=True)
class AssetResult:
    """
    Outcome of replaying one plan.

    Every step's current_value uses the valuation-date price, so the
    step series reads as "what the holdings accumulated so far are worth
    at the valuation date".
    """
    symbol: str
    name: str
    total_invested: Decimal
    total_units: Decimal
    current_value: Decimal
    steps: Tuple[SimulationStep, ...] = ()

    @property
    def pnl(self) -> Decimal:
        return self.current_value - self.total_invested

    @property
    def roi(self) -> Decimal:
        return compute_roi(self.current_value, self.total_invested)

    @classmethod
    def empty(cls, symbol: str, name: str) -> "AssetResult":
        return cls(
            symbol=symbol,
            name=name,
            total_invested=ZERO,
            total_units=ZERO,
            current_value=ZERO,
        )


@dataclass(frozen=True)
class TimeSeriesPoint:
    """Monthly bucket of a merged step series (month = first day)"""
    month: date
    invested: Decimal
    value: Decimal


@dataclass(frozen=True)
class PortfolioResult:
    """Aggregate of several asset results"""
    total_invested: Decimal
    total_current_value: Decimal
    holdings: Dict[str, Decimal]
    values: Dict[str, Decimal]
    asset_results: Tuple[AssetResult, ...] = ()
    time_series: Tuple[TimeSeriesPoint, ...] = ()

    @property
    def pnl(self) -> Decimal:
        return self.total_current_value - self.total_invested

    @property
    def roi(self) -> Decimal:
        return compute_roi(self.total_current_value, self.total_invested)


@dataclass(frozen=True)
class RankedEntry:
    label: str
    roi: Decimal
    is_user_portfolio: bool
    total_invested: Decimal
    current_value: Decimal
    rank: int
    value_over_time: Tuple[TimeSeriesPoint, ...] = ()


@dataclass(frozen=True)
class ComparisonResult:
    entries: Tuple[RankedEntry, ...]
    user_rank: int
    top: Tuple[RankedEntry, ...]

    @property
    def total_entries(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class PortfolioEvaluation:
    portfolio: PortfolioResult
    comparison: ComparisonResult
