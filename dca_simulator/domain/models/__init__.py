"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    DayOfMonthPolicy,
    PriceSource,

    # Errors
    PlanValidationError,

    # Entities
    AnchorPrice,
    Asset,
    AssetDefinition,
    InvestmentPlan,
    PricePoint,
    PriceUpdate,
    ResolvedPrice,
    ensure_valid_plans,
)
from .portfolio import (
    AssetResult,
    ComparisonResult,
    PortfolioEvaluation,
    PortfolioResult,
    RankedEntry,
    SimulationStep,
    TimeSeriesPoint,
    compute_roi,
)

__all__ = [
    "AnchorPrice",
    "Asset",
    "AssetDefinition",
    "AssetResult",
    "ComparisonResult",
    "DayOfMonthPolicy",
    "InvestmentPlan",
    "PlanValidationError",
    "PortfolioEvaluation",
    "PortfolioResult",
    "PricePoint",
    "PriceSource",
    "PriceUpdate",
    "RankedEntry",
    "ResolvedPrice",
    "SimulationStep",
    "TimeSeriesPoint",
    "compute_roi",
    "ensure_valid_plans",
]
