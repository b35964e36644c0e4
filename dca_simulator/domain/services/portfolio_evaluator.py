"""
Portfolio evaluation entry point: simulate, aggregate, rank.
"""

import asyncio
import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from dca_simulator.domain.models import (
    InvestmentPlan,
    PortfolioEvaluation,
    ensure_valid_plans,
)
from dca_simulator.domain.services.aggregator import PortfolioAggregator
from dca_simulator.domain.services.comparative_ranker import ComparativeRanker
from dca_simulator.domain.services.simulation_engine import SimulationEngine

logger = logging.getLogger(__name__)


class PortfolioEvaluator:
    """
    Runs the user's plans concurrently (bounded), aggregates them and
    ranks the result against competing assets replaying the same schedule.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        ranker: ComparativeRanker,
        aggregator: Optional[PortfolioAggregator] = None,
        default_competing: Sequence[str] = (),
        concurrency: int = 4,
    ):
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        self.engine = engine
        self.ranker = ranker
        self.aggregator = aggregator or PortfolioAggregator()
        self.default_competing = list(default_competing)
        self.concurrency = concurrency

    async def evaluate_portfolio(
        self,
        plans: Sequence[InvestmentPlan],
        competing_symbols: Optional[Iterable[str]] = None,
        as_of: Optional[date] = None,
    ) -> PortfolioEvaluation:
        ensure_valid_plans(plans)
        active = [plan for plan in plans if plan.is_active]
        if len(active) != len(plans):
            logger.info("Skipping %d inactive plan(s)", len(plans) - len(active))

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _run(plan: InvestmentPlan):
            async with semaphore:
                return await self.engine.simulate(plan, as_of)

        results = await asyncio.gather(*(_run(plan) for plan in active))
        portfolio = self.aggregator.aggregate(results)

        candidates = self.default_competing if competing_symbols is None else list(competing_symbols)
        comparison = await self.ranker.rank(
            portfolio.roi,
            candidates,
            active,
            as_of=as_of,
            user_invested=portfolio.total_invested,
            user_value=portfolio.total_current_value,
        )

        logger.info(
            "Evaluated %d plan(s) | invested=%s value=%s roi=%s rank=%d/%d",
            len(active),
            portfolio.total_invested,
            portfolio.total_current_value,
            portfolio.roi,
            comparison.user_rank,
            comparison.total_entries,
        )
        return PortfolioEvaluation(portfolio=portfolio, comparison=comparison)
