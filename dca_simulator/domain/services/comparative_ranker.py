"""
COMPARATIVE RANKER
"What if the same schedule had bought something else?"

RESPONSIBILITIES:
- Replay every user plan with each candidate symbol substituted
- Aggregate each candidate exactly like the user's own portfolio
- Rank the user portfolio against all candidates by ROI

RULES:
✅ Candidates already held by the user are excluded
✅ Sort by ROI descending, ties alphabetical by label
✅ rank = 1 + number of entries with strictly greater ROI
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from dca_simulator.domain.models import (
    ComparisonResult,
    InvestmentPlan,
    PortfolioResult,
    RankedEntry,
)
from dca_simulator.domain.services.aggregator import PortfolioAggregator
from dca_simulator.domain.services.simulation_engine import SimulationEngine

logger = logging.getLogger(__name__)

USER_PORTFOLIO_LABEL = "Your Portfolio"


class ComparativeRanker:
    def __init__(
        self,
        engine: SimulationEngine,
        aggregator: Optional[PortfolioAggregator] = None,
        top_n: int = 3,
        concurrency: int = 4,
    ):
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        self.engine = engine
        self.aggregator = aggregator or PortfolioAggregator()
        self.top_n = top_n
        self.concurrency = concurrency

    @staticmethod
    def competing_symbols(
        candidate_symbols: Iterable[str],
        plans: Sequence[InvestmentPlan],
    ) -> List[str]:
        """Candidates minus the user's own symbols, deduplicated, order kept"""
        chosen = {plan.symbol for plan in plans}
        result: List[str] = []
        for symbol in candidate_symbols:
            if symbol and symbol not in chosen and symbol not in result:
                result.append(symbol)
        return result

    async def replay(
        self,
        symbol: str,
        plans: Sequence[InvestmentPlan],
        as_of: Optional[date] = None,
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> PortfolioResult:
        """Run every plan against symbol and aggregate the outcome"""
        semaphore = semaphore or asyncio.Semaphore(self.concurrency)

        async def _run(plan: InvestmentPlan):
            async with semaphore:
                return await self.engine.simulate(plan.with_symbol(symbol), as_of)

        results = await asyncio.gather(*(_run(plan) for plan in plans))
        return self.aggregator.aggregate(results)

    async def rank(
        self,
        user_roi: Decimal,
        candidate_symbols: Iterable[str],
        plans: Sequence[InvestmentPlan],
        as_of: Optional[date] = None,
        user_invested: Decimal = Decimal("0"),
        user_value: Decimal = Decimal("0"),
    ) -> ComparisonResult:
        symbols = self.competing_symbols(candidate_symbols, plans)
        semaphore = asyncio.Semaphore(self.concurrency)

        portfolios = await asyncio.gather(
            *(self.replay(symbol, plans, as_of, semaphore) for symbol in symbols)
        )

        entries = [
            RankedEntry(
                label=USER_PORTFOLIO_LABEL,
                roi=user_roi,
                is_user_portfolio=True,
                total_invested=user_invested,
                current_value=user_value,
                rank=0,
            )
        ]
        for symbol, portfolio in zip(symbols, portfolios):
            entries.append(
                RankedEntry(
                    label=symbol,
                    roi=portfolio.roi,
                    is_user_portfolio=False,
                    total_invested=portfolio.total_invested,
                    current_value=portfolio.total_current_value,
                    rank=0,
                    value_over_time=portfolio.time_series,
                )
            )

        comparison = self.build_ranking(entries, self.top_n)
        logger.info(
            "Ranked portfolio #%d of %d (roi=%s)",
            comparison.user_rank,
            comparison.total_entries,
            user_roi,
        )
        return comparison

    @staticmethod
    def build_ranking(entries: Sequence[RankedEntry], top_n: int = 3) -> ComparisonResult:
        ordered = sorted(entries, key=lambda e: (-e.roi, e.label))
        ranked = tuple(
            RankedEntry(
                label=e.label,
                roi=e.roi,
                is_user_portfolio=e.is_user_portfolio,
                total_invested=e.total_invested,
                current_value=e.current_value,
                rank=1 + sum(1 for other in ordered if other.roi > e.roi),
                value_over_time=e.value_over_time,
            )
            for e in ordered
        )
        user_rank = next((e.rank for e in ranked if e.is_user_portfolio), 0)
        return ComparisonResult(
            entries=ranked,
            user_rank=user_rank,
            top=ranked[:max(top_n, 0)],
        )
