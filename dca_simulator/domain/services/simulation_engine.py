"""
SIMULATION ENGINE
Replay a recurring investment plan against resolved prices

RESPONSIBILITIES:
- Walk the schedule in strict chronological order
- Convert each step's amount into fractional units
- Carry cumulative units / invested forward
- Value every step with the valuation-date price

RULES:
✅ Steps are sequential per asset (cumulative state)
✅ Empty schedule -> zero result, never an error
✅ Invalid plans are rejected before any price lookup
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Mapping, Optional

from dca_simulator.domain.models import (
    AssetResult,
    InvestmentPlan,
    SimulationStep,
    ensure_valid_plans,
)
from dca_simulator.domain.services.price_resolver import PriceResolver
from dca_simulator.domain.services.schedule_generator import ScheduleGenerator
from dca_simulator.utils.time import today_utc

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Simulation Engine
    One plan in, one AssetResult out
    """

    def __init__(
        self,
        resolver: PriceResolver,
        schedule_generator: Optional[ScheduleGenerator] = None,
        asset_names: Optional[Mapping[str, str]] = None,
        clock: Callable[[], date] = today_utc,
    ):
        """
        Initialize simulation engine

        Args:
            resolver: Price resolver shared across simulations
            schedule_generator: Schedule policy (default: clamp)
            asset_names: Symbol -> display name lookup
            clock: Returns the default valuation date
        """
        self.resolver = resolver
        self.schedule_generator = schedule_generator or ScheduleGenerator()
        self.asset_names = dict(asset_names or {})
        self._clock = clock

    def display_name(self, symbol: str) -> str:
        return self.asset_names.get(symbol, symbol)

    async def simulate(self, plan: InvestmentPlan, as_of: Optional[date] = None) -> AssetResult:
        """
        Replay plan up to as_of (default: today)

        Args:
            plan: Investment plan
            as_of: Valuation date and schedule cutoff

        Returns:
            AssetResult with per-step series
        """
        ensure_valid_plans([plan])
        as_of = as_of or self._clock()
        name = self.display_name(plan.symbol)

        schedule = self.schedule_generator.generate(plan, as_of)
        if not schedule:
            logger.debug("Empty schedule for %s (start=%s, as_of=%s)", plan.symbol, plan.start_date, as_of)
            return AssetResult.empty(plan.symbol, name)

        valuation = await self.resolver.resolve(plan.symbol, as_of)

        amount = plan.amount_per_step
        cumulative_units = Decimal("0")
        cumulative_invested = Decimal("0")
        steps: List[SimulationStep] = []

        for step_date in schedule:
            purchase = await self.resolver.resolve(plan.symbol, step_date)
            units = amount / purchase.price

            cumulative_units += units
            cumulative_invested += amount

            steps.append(
                SimulationStep(
                    date=step_date,
                    invested_amount=amount,
                    units_purchased=units,
                    price_at_purchase=purchase.price,
                    price_source=purchase.source,
                    cumulative_units=cumulative_units,
                    cumulative_invested=cumulative_invested,
                    current_value=cumulative_units * valuation.price,
                )
            )

        result = AssetResult(
            symbol=plan.symbol,
            name=name,
            total_invested=cumulative_invested,
            total_units=cumulative_units,
            current_value=cumulative_units * valuation.price,
            steps=tuple(steps),
        )
        logger.info(
            "Simulated %s | steps=%d invested=%s value=%s (%s price)",
            plan.symbol,
            len(steps),
            result.total_invested,
            result.current_value,
            valuation.source.value,
        )
        return result
