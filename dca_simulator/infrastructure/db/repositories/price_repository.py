"""
Price History Repository
Idempotent upsert + fetch of daily prices
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dca_simulator.domain.models import PricePoint
from dca_simulator.infrastructure.db.models import PriceHistoryModel
from dca_simulator.utils.time import utcnow_naive


class PriceHistoryRepository:
    """Repository for PriceHistory"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_model(self, symbol: str, target_date: date) -> Optional[PriceHistoryModel]:
        result = await self.session.execute(
            select(PriceHistoryModel).where(
                PriceHistoryModel.symbol == symbol,
                PriceHistoryModel.date == target_date,
            )
        )
        return result.scalar_one_or_none()

    async def get_price(self, symbol: str, target_date: date) -> Optional[Decimal]:
        model = await self.get_model(symbol, target_date)
        if model is None:
            return None
        return Decimal(str(model.price))

    async def upsert(self, symbol: str, target_date: date, price: Decimal) -> PriceHistoryModel:
        existing = await self.get_model(symbol, target_date)
        if existing:
            existing.price = price
            existing.updated_at = utcnow_naive()
            return existing

        record = PriceHistoryModel(
            symbol=symbol,
            date=target_date,
            price=price,
            updated_at=utcnow_naive(),
        )
        self.session.add(record)
        return record

    async def get_range(self, symbol: str, start: date, end: date) -> List[PricePoint]:
        result = await self.session.execute(
            select(PriceHistoryModel)
            .where(
                PriceHistoryModel.symbol == symbol,
                PriceHistoryModel.date >= start,
                PriceHistoryModel.date <= end,
            )
            .order_by(PriceHistoryModel.date)
        )
        return [
            PricePoint(symbol=row.symbol, date=row.date, price=Decimal(str(row.price)))
            for row in result.scalars().all()
        ]


class SqlPriceStore:
    """
    PriceStore backed by the price_history table.

    Each call opens its own session so concurrent resolutions never
    share one.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get(self, symbol: str, target_date: date) -> Optional[Decimal]:
        async with self._session_factory() as session:
            return await PriceHistoryRepository(session).get_price(symbol, target_date)

    async def put(self, symbol: str, target_date: date, price: Decimal) -> None:
        async with self._session_factory() as session:
            repo = PriceHistoryRepository(session)
            await repo.upsert(symbol, target_date, price)
            try:
                await session.commit()
            except IntegrityError:
                # concurrent insert of the same (symbol, date) won; overwrite it
                await session.rollback()
                await repo.upsert(symbol, target_date, price)
                await session.commit()
