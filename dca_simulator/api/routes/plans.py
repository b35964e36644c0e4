"""
Investment plan CRUD routes.
"""

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from dca_simulator.domain.models import InvestmentPlan
from dca_simulator.domain.schemas.portfolio import InvestmentPlanSchema
from dca_simulator.infrastructure.db.database import get_db
from dca_simulator.infrastructure.db.repositories.plan_repository import InvestmentPlanRepository

router = APIRouter()

# investment_plan stores both amounts as NUMERIC(.., 2)
STORED_PLACES = 2


def _storage_problems(plan: InvestmentPlan) -> List[str]:
    problems: List[str] = []
    for field, value in (
        ("monthly amount", plan.monthly_amount),
        ("allocation percentage", plan.allocation_percentage),
    ):
        if value.normalize().as_tuple().exponent < -STORED_PLACES:
            problems.append(f"{plan.symbol}: {field} allows at most {STORED_PLACES} decimal places")
    if plan.monthly_amount >= Decimal("1e12"):
        problems.append(f"{plan.symbol}: monthly amount is too large")
    return problems


def _serialize(plan: InvestmentPlan) -> dict:
    return {
        "id": plan.id,
        "symbol": plan.symbol,
        "start_date": plan.start_date.isoformat(),
        "monthly_amount": float(plan.monthly_amount),
        "investment_day": plan.investment_day,
        "allocation_percentage": float(plan.allocation_percentage),
        "is_active": plan.is_active,
    }


@router.post("", status_code=201)
async def create_plan(payload: InvestmentPlanSchema, db: AsyncSession = Depends(get_db)):
    plan = payload.to_entity()
    problems = plan.validation_errors() or _storage_problems(plan)
    if problems:
        raise HTTPException(status_code=400, detail=problems)
    created = await InvestmentPlanRepository(db).create(
        symbol=plan.symbol,
        start_date=plan.start_date,
        monthly_amount=plan.monthly_amount,
        investment_day=plan.investment_day,
        allocation_percentage=plan.allocation_percentage,
        is_active=plan.is_active,
    )
    return _serialize(created)


@router.get("")
async def list_plans(db: AsyncSession = Depends(get_db)) -> List[dict]:
    plans = await InvestmentPlanRepository(db).list_active()
    return [_serialize(p) for p in plans]


@router.delete("/{plan_id}")
async def delete_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await InvestmentPlanRepository(db).delete(plan_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"deleted": plan_id}
