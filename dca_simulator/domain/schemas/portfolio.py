from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from dca_simulator.domain.models import (
    AssetResult,
    InvestmentPlan,
    PortfolioEvaluation,
    RankedEntry,
    TimeSeriesPoint,
)


class InvestmentPlanSchema(BaseModel):
    symbol: str
    start_date: date
    monthly_amount: Decimal
    investment_day: int
    allocation_percentage: Decimal = Decimal("100")
    is_active: bool = True

    def to_entity(self) -> InvestmentPlan:
        return InvestmentPlan(
            symbol=self.symbol.strip().upper(),
            start_date=self.start_date,
            monthly_amount=self.monthly_amount,
            investment_day=self.investment_day,
            allocation_percentage=self.allocation_percentage,
            is_active=self.is_active,
        )


class EvaluatePortfolioRequest(BaseModel):
    plans: List[InvestmentPlanSchema] = Field(..., min_length=1)
    competing_symbols: Optional[List[str]] = None
    as_of: Optional[date] = None


class SimulationStepSchema(BaseModel):
    date: date
    invested_amount: float
    units_purchased: float
    price_at_purchase: float
    price_source: str
    cumulative_units: float
    cumulative_invested: float
    current_value: float


class AssetResultSchema(BaseModel):
    symbol: str
    name: str
    total_invested: float
    total_units: float
    current_value: float
    pnl: float
    roi: float
    steps: List[SimulationStepSchema]

    @classmethod
    def from_result(cls, result: AssetResult) -> "AssetResultSchema":
        return cls(
            symbol=result.symbol,
            name=result.name,
            total_invested=float(result.total_invested),
            total_units=float(result.total_units),
            current_value=float(result.current_value),
            pnl=float(result.pnl),
            roi=round(float(result.roi), 4),
            steps=[
                SimulationStepSchema(
                    date=s.date,
                    invested_amount=float(s.invested_amount),
                    units_purchased=float(s.units_purchased),
                    price_at_purchase=float(s.price_at_purchase),
                    price_source=s.price_source.value,
                    cumulative_units=float(s.cumulative_units),
                    cumulative_invested=float(s.cumulative_invested),
                    current_value=float(s.current_value),
                )
                for s in result.steps
            ],
        )


class TimeSeriesPointSchema(BaseModel):
    month: date
    invested: float
    value: float

    @classmethod
    def from_point(cls, point: TimeSeriesPoint) -> "TimeSeriesPointSchema":
        return cls(month=point.month, invested=float(point.invested), value=float(point.value))


class RankedEntrySchema(BaseModel):
    rank: int
    label: str
    roi: float
    is_user_portfolio: bool
    total_invested: float
    current_value: float
    value_over_time: List[TimeSeriesPointSchema]

    @classmethod
    def from_entry(cls, entry: RankedEntry) -> "RankedEntrySchema":
        return cls(
            rank=entry.rank,
            label=entry.label,
            roi=round(float(entry.roi), 4),
            is_user_portfolio=entry.is_user_portfolio,
            total_invested=float(entry.total_invested),
            current_value=float(entry.current_value),
            value_over_time=[TimeSeriesPointSchema.from_point(p) for p in entry.value_over_time],
        )


class PortfolioSummarySchema(BaseModel):
    total_invested: float
    total_current_value: float
    pnl: float
    roi: float


class EvaluatePortfolioResponse(BaseModel):
    summary: PortfolioSummarySchema
    assets: List[AssetResultSchema]
    time_series: List[TimeSeriesPointSchema]
    user_rank: int
    total_entries: int
    top: List[RankedEntrySchema]
    ranking: List[RankedEntrySchema]

    @classmethod
    def from_evaluation(cls, evaluation: PortfolioEvaluation) -> "EvaluatePortfolioResponse":
        portfolio = evaluation.portfolio
        comparison = evaluation.comparison
        return cls(
            summary=PortfolioSummarySchema(
                total_invested=float(portfolio.total_invested),
                total_current_value=float(portfolio.total_current_value),
                pnl=float(portfolio.pnl),
                roi=round(float(portfolio.roi), 4),
            ),
            assets=[AssetResultSchema.from_result(r) for r in portfolio.asset_results],
            time_series=[TimeSeriesPointSchema.from_point(p) for p in portfolio.time_series],
            user_rank=comparison.user_rank,
            total_entries=comparison.total_entries,
            top=[RankedEntrySchema.from_entry(e) for e in comparison.top],
            ranking=[RankedEntrySchema.from_entry(e) for e in comparison.entries],
        )
