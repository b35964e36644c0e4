from datetime import date
from decimal import Decimal

import pytest

from dca_simulator.domain.models import InvestmentPlan, PlanValidationError, PriceSource
from dca_simulator.domain.services.price_resolver import PriceResolver
from dca_simulator.domain.services.simulation_engine import SimulationEngine
from dca_simulator.infrastructure.cache.memory_price_store import InMemoryPriceStore

from stubs import FIXED_TODAY, flat_fallback


def _plan(**overrides) -> InvestmentPlan:
    values = dict(
        symbol="BTC",
        start_date=date(2024, 1, 1),
        monthly_amount=Decimal("200"),
        investment_day=15,
    )
    values.update(overrides)
    return InvestmentPlan(**values)


@pytest.mark.asyncio
async def test_three_months_at_flat_price(engine):
    result = await engine.simulate(_plan(), as_of=date(2024, 3, 20))

    assert len(result.steps) == 3
    assert result.total_invested == Decimal("600")
    assert result.total_units == Decimal("6")
    assert result.current_value == Decimal("600")
    assert result.roi == Decimal("0")
    assert result.name == "Bitcoin"
    assert [s.date for s in result.steps] == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]
    assert all(s.price_source == PriceSource.FALLBACK for s in result.steps)


@pytest.mark.asyncio
async def test_step_values_use_valuation_price():
    store = InMemoryPriceStore()
    store.seed("ETH", date(2024, 1, 10), Decimal("100"))
    store.seed("ETH", date(2024, 2, 10), Decimal("50"))
    store.seed("ETH", date(2024, 2, 20), Decimal("200"))
    engine = SimulationEngine(PriceResolver(store, flat_fallback(), clock=lambda: FIXED_TODAY))

    result = await engine.simulate(
        _plan(symbol="ETH", investment_day=10, monthly_amount=Decimal("100")),
        as_of=date(2024, 2, 20),
    )

    first, second = result.steps
    assert first.units_purchased == Decimal("1")
    assert second.units_purchased == Decimal("2")
    assert first.current_value == Decimal("200")
    assert second.current_value == Decimal("600")
    assert result.current_value == Decimal("600")
    assert result.roi == Decimal("200")
    assert all(s.price_source == PriceSource.CACHED for s in result.steps)


@pytest.mark.asyncio
async def test_invested_sum_and_monotonic_cumulatives(engine):
    plan = _plan(monthly_amount=Decimal("333.33"), allocation_percentage=Decimal("40"), investment_day=28)
    result = await engine.simulate(plan, as_of=date(2024, 12, 31))

    assert len(result.steps) == 12
    assert sum(s.invested_amount for s in result.steps) == Decimal("333.33") * Decimal("40") / Decimal("100") * 12
    assert result.total_invested == result.steps[-1].cumulative_invested
    for previous, current in zip(result.steps, result.steps[1:]):
        assert current.cumulative_units >= previous.cumulative_units
        assert current.cumulative_invested >= previous.cumulative_invested


@pytest.mark.asyncio
async def test_future_start_returns_zero_result(engine, price_store):
    result = await engine.simulate(_plan(start_date=date(2030, 1, 1)), as_of=date(2024, 6, 1))

    assert result.steps == ()
    assert result.total_invested == Decimal("0")
    assert result.current_value == Decimal("0")
    assert result.roi == Decimal("0")
    assert len(price_store) == 0


@pytest.mark.asyncio
async def test_default_valuation_date_is_today(engine, price_store):
    result = await engine.simulate(_plan(start_date=date(2024, 5, 1)))

    assert [s.date for s in result.steps] == [date(2024, 5, 15), date(2024, 6, 15)]
    assert await price_store.get("BTC", FIXED_TODAY) == Decimal("100")


@pytest.mark.asyncio
async def test_unknown_symbol_keeps_symbol_as_name(engine):
    result = await engine.simulate(_plan(symbol="PEPE"), as_of=date(2024, 1, 31))
    assert result.name == "PEPE"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"monthly_amount": Decimal("0")},
        {"monthly_amount": Decimal("-10")},
        {"investment_day": 0},
        {"investment_day": 32},
        {"allocation_percentage": Decimal("101")},
        {"symbol": ""},
    ],
)
async def test_invalid_plans_rejected_before_pricing(engine, price_store, overrides):
    with pytest.raises(PlanValidationError) as exc_info:
        await engine.simulate(_plan(**overrides), as_of=date(2024, 3, 20))
    assert exc_info.value.problems
    assert len(price_store) == 0
