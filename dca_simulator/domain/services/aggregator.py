"""
Portfolio aggregation across per-asset results.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Tuple

from dca_simulator.domain.models import (
    AssetResult,
    PortfolioResult,
    SimulationStep,
    TimeSeriesPoint,
)


class PortfolioAggregator:
    """Merge asset results into a single portfolio view"""

    def aggregate(self, results: Sequence[AssetResult]) -> PortfolioResult:
        holdings: Dict[str, Decimal] = OrderedDict()
        values: Dict[str, Decimal] = OrderedDict()
        total_invested = Decimal("0")
        total_value = Decimal("0")

        for result in results:
            total_invested += result.total_invested
            total_value += result.current_value
            holdings[result.symbol] = holdings.get(result.symbol, Decimal("0")) + result.total_units
            values[result.symbol] = values.get(result.symbol, Decimal("0")) + result.current_value

        return PortfolioResult(
            total_invested=total_invested,
            total_current_value=total_value,
            holdings=dict(holdings),
            values=dict(values),
            asset_results=tuple(results),
            time_series=self.merge_time_series(r.steps for r in results),
        )

    @staticmethod
    def merge_time_series(
        step_series: Iterable[Iterable[SimulationStep]]
    ) -> Tuple[TimeSeriesPoint, ...]:
        """
        Bucket steps by (year, month); invested and value are summed per bucket.
        """
        buckets: Dict[Tuple[int, int], List[Decimal]] = {}
        for steps in step_series:
            for step in steps:
                key = (step.date.year, step.date.month)
                bucket = buckets.setdefault(key, [Decimal("0"), Decimal("0")])
                bucket[0] += step.invested_amount
                bucket[1] += step.current_value

        return tuple(
            TimeSeriesPoint(month=date(year, month, 1), invested=invested, value=value)
            for (year, month), (invested, value) in sorted(buckets.items())
        )
