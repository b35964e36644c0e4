"""
Repository for Investment Plans
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dca_simulator.domain.models import InvestmentPlan
from dca_simulator.infrastructure.db.models import InvestmentPlanModel


def _to_entity(model: InvestmentPlanModel) -> InvestmentPlan:
    return InvestmentPlan(
        id=model.id,
        symbol=model.symbol,
        start_date=model.start_date,
        monthly_amount=Decimal(str(model.monthly_amount)),
        investment_day=model.investment_day,
        allocation_percentage=Decimal(str(model.allocation_percentage)),
        is_active=bool(model.is_active),
    )


class InvestmentPlanRepository:
    """CRUD for investment plans"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        symbol: str,
        start_date: date,
        monthly_amount: Decimal,
        investment_day: int,
        allocation_percentage: Decimal = Decimal("100"),
        is_active: bool = True,
    ) -> InvestmentPlan:
        model = InvestmentPlanModel(
            symbol=symbol,
            start_date=start_date,
            monthly_amount=monthly_amount,
            investment_day=investment_day,
            allocation_percentage=allocation_percentage,
            is_active=is_active,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _to_entity(model)

    async def get(self, plan_id: int) -> Optional[InvestmentPlan]:
        model = await self.session.get(InvestmentPlanModel, plan_id)
        return _to_entity(model) if model else None

    async def list_active(self) -> List[InvestmentPlan]:
        result = await self.session.execute(
            select(InvestmentPlanModel)
            .where(InvestmentPlanModel.is_active.is_(True))
            .order_by(InvestmentPlanModel.id)
        )
        return [_to_entity(m) for m in result.scalars().all()]

    async def delete(self, plan_id: int) -> bool:
        model = await self.session.get(InvestmentPlanModel, plan_id)
        if model is None:
            return False
        await self.session.delete(model)
        await self.session.commit()
        return True
