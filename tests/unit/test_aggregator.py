from datetime import date
from decimal import Decimal

from dca_simulator.domain.models import AssetResult, PriceSource, SimulationStep
from dca_simulator.domain.services.aggregator import PortfolioAggregator


def _step(day: date, invested: str, value: str) -> SimulationStep:
    return SimulationStep(
        date=day,
        invested_amount=Decimal(invested),
        units_purchased=Decimal("1"),
        price_at_purchase=Decimal(invested),
        price_source=PriceSource.CACHED,
        cumulative_units=Decimal("1"),
        cumulative_invested=Decimal(invested),
        current_value=Decimal(value),
    )


def test_aggregate_sums_totals_and_holdings():
    btc = AssetResult(
        symbol="BTC", name="Bitcoin",
        total_invested=Decimal("300"), total_units=Decimal("0.01"), current_value=Decimal("450"),
    )
    eth = AssetResult(
        symbol="ETH", name="Ethereum",
        total_invested=Decimal("100"), total_units=Decimal("0.05"), current_value=Decimal("50"),
    )

    portfolio = PortfolioAggregator().aggregate([btc, eth])

    assert portfolio.total_invested == Decimal("400")
    assert portfolio.total_current_value == Decimal("500")
    assert portfolio.pnl == Decimal("100")
    assert portfolio.roi == Decimal("25")
    assert portfolio.holdings == {"BTC": Decimal("0.01"), "ETH": Decimal("0.05")}
    assert portfolio.values == {"BTC": Decimal("450"), "ETH": Decimal("50")}


def test_aggregate_of_nothing_is_zero():
    portfolio = PortfolioAggregator().aggregate([])
    assert portfolio.total_invested == Decimal("0")
    assert portfolio.roi == Decimal("0")
    assert portfolio.time_series == ()


def test_time_series_merges_by_month():
    series = PortfolioAggregator.merge_time_series(
        [
            [_step(date(2024, 2, 15), "100", "120"), _step(date(2024, 1, 15), "100", "110")],
            [_step(date(2024, 1, 31), "50", "40")],
        ]
    )

    assert [p.month for p in series] == [date(2024, 1, 1), date(2024, 2, 1)]
    assert series[0].invested == Decimal("150")
    assert series[0].value == Decimal("150")
    assert series[1].invested == Decimal("100")
    assert series[1].value == Decimal("120")
