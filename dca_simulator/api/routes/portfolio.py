"""
Portfolio API Routes
Evaluate DCA plans and rank them against competing assets
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dca_simulator.domain.models import PlanValidationError
from dca_simulator.domain.schemas.portfolio import (
    EvaluatePortfolioRequest,
    EvaluatePortfolioResponse,
)
from dca_simulator.domain.services.portfolio_evaluator import PortfolioEvaluator
from dca_simulator.infrastructure.db.database import get_db
from dca_simulator.infrastructure.db.repositories.plan_repository import InvestmentPlanRepository

logger = logging.getLogger(__name__)
router = APIRouter()


def get_evaluator(request: Request) -> PortfolioEvaluator:
    evaluator = getattr(request.app.state, "portfolio_evaluator", None)
    if evaluator is None:
        raise HTTPException(status_code=503, detail="Evaluator not initialized")
    return evaluator


@router.post("/evaluate", response_model=EvaluatePortfolioResponse)
async def evaluate_portfolio(
    payload: EvaluatePortfolioRequest,
    evaluator: PortfolioEvaluator = Depends(get_evaluator),
):
    """Simulate the given plans and rank the result"""
    plans = [p.to_entity() for p in payload.plans]
    competing = (
        [s.strip().upper() for s in payload.competing_symbols]
        if payload.competing_symbols is not None
        else None
    )
    try:
        evaluation = await evaluator.evaluate_portfolio(plans, competing, payload.as_of)
    except PlanValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.problems)
    return EvaluatePortfolioResponse.from_evaluation(evaluation)


@router.get("/evaluate/saved", response_model=EvaluatePortfolioResponse)
async def evaluate_saved_plans(
    db: AsyncSession = Depends(get_db),
    evaluator: PortfolioEvaluator = Depends(get_evaluator),
):
    """Evaluate every active stored plan"""
    plans = await InvestmentPlanRepository(db).list_active()
    if not plans:
        raise HTTPException(status_code=404, detail="No active investment plans")
    try:
        evaluation = await evaluator.evaluate_portfolio(plans)
    except PlanValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.problems)
    return EvaluatePortfolioResponse.from_evaluation(evaluation)
