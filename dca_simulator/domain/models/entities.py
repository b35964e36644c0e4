"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Sequence


class PriceSource(str, Enum):
    """Where a resolved price came from"""
    CACHED = "cached"
    LIVE = "live"
    HISTORICAL = "historical"
    FALLBACK = "fallback"


class DayOfMonthPolicy(str, Enum):
    """What to do when the investment day does not exist in a month"""
    CLAMP = "clamp"
    SKIP = "skip"


class PlanValidationError(ValueError):
    """One or more investment plans were rejected before simulation"""

    def __init__(self, problems: Sequence[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


@dataclass(frozen=True)
class AssetDefinition:
    """Catalogue entry for a tradable asset - Immutable"""
    symbol: str
    name: str
    coingecko_id: Optional[str] = None
    seed_price: Optional[Decimal] = None

    def __post_init__(self):
        if not self.symbol:
            raise ValueError("Asset symbol cannot be empty")


@dataclass(frozen=True)
class Asset:
    """Asset with its last-known market price"""
    symbol: str
    name: str
    current_price: Decimal
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class AnchorPrice:
    """Known reference price for an asset at a date"""
    date: date
    price: Decimal


@dataclass(frozen=True)
class PricePoint:
    """Stored price for (symbol, calendar date)"""
    symbol: str
    date: date
    price: Decimal


@dataclass(frozen=True)
class ResolvedPrice:
    """Price resolved for (symbol, date) with its source attribution"""
    symbol: str
    date: date
    price: Decimal
    source: PriceSource


@dataclass(frozen=True)
class PriceUpdate:
    """Accepted live tick for an asset"""
    symbol: str
    price: Decimal
    ts: datetime


@dataclass(frozen=True)
class InvestmentPlan:
    """Recurring monthly purchase of one asset - Immutable"""
    symbol: str
    start_date: date
    monthly_amount: Decimal
    investment_day: int
    allocation_percentage: Decimal = Decimal("100")
    is_active: bool = True
    id: Optional[int] = None

    @property
    def amount_per_step(self) -> Decimal:
        """Amount invested on each scheduled date"""
        return self.monthly_amount * self.allocation_percentage / Decimal("100")

    def with_symbol(self, symbol: str) -> "InvestmentPlan":
        """Same schedule and amounts, different asset"""
        return replace(self, symbol=symbol, id=None)

    def validation_errors(self) -> List[str]:
        problems: List[str] = []
        label = self.symbol or "<empty>"
        if not self.symbol or not self.symbol.strip():
            problems.append("Plan symbol cannot be empty")
        if self.monthly_amount is None or not self.monthly_amount.is_finite() or self.monthly_amount <= Decimal("0"):
            problems.append(f"{label}: monthly amount must be positive")
        if not 1 <= int(self.investment_day) <= 31:
            problems.append(f"{label}: investment day must be between 1 and 31")
        if (
            self.allocation_percentage is None
            or not self.allocation_percentage.is_finite()
            or not Decimal("0") <= self.allocation_percentage <= Decimal("100")
        ):
            problems.append(f"{label}: allocation percentage must be between 0 and 100")
        return problems


def ensure_valid_plans(plans: Sequence[InvestmentPlan]) -> None:
    """Raise PlanValidationError listing every problem across the plans"""
    problems: List[str] = []
    for plan in plans:
        problems.extend(plan.validation_errors())
    if problems:
        raise PlanValidationError(problems)
