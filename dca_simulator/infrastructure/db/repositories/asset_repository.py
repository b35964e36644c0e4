"""
Asset Repository
Assets are only ever upserted, never deleted.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dca_simulator.domain.models import Asset, AssetDefinition
from dca_simulator.infrastructure.db.models import AssetModel
from dca_simulator.utils.time import utcnow_naive


def _to_entity(model: AssetModel) -> Asset:
    return Asset(
        symbol=model.symbol,
        name=model.name,
        current_price=Decimal(str(model.current_price)),
        last_updated=model.last_updated,
    )


class AssetRepository:
    """Repository for Asset"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_model(self, symbol: str) -> Optional[AssetModel]:
        result = await self.session.execute(
            select(AssetModel).where(AssetModel.symbol == symbol)
        )
        return result.scalar_one_or_none()

    async def get(self, symbol: str) -> Optional[Asset]:
        model = await self.get_model(symbol)
        return _to_entity(model) if model else None

    async def list_all(self) -> List[Asset]:
        result = await self.session.execute(select(AssetModel).order_by(AssetModel.symbol))
        return [_to_entity(m) for m in result.scalars().all()]

    async def upsert_price(
        self,
        symbol: str,
        price: Decimal,
        updated_at: Optional[datetime] = None,
        name: Optional[str] = None,
    ) -> AssetModel:
        updated_at = updated_at or utcnow_naive()
        existing = await self.get_model(symbol)
        if existing:
            existing.current_price = price
            existing.last_updated = updated_at
            if name:
                existing.name = name
            return existing

        record = AssetModel(
            symbol=symbol,
            name=name or symbol,
            current_price=price,
            last_updated=updated_at,
        )
        self.session.add(record)
        return record

    async def seed(self, definitions: Iterable[AssetDefinition]) -> int:
        """Insert catalogue assets that are missing; existing rows are kept"""
        created = 0
        for definition in definitions:
            if await self.get_model(definition.symbol) is not None:
                continue
            self.session.add(
                AssetModel(
                    symbol=definition.symbol,
                    name=definition.name,
                    current_price=definition.seed_price or Decimal("0"),
                    last_updated=utcnow_naive(),
                )
            )
            created += 1
        if created:
            await self.session.flush()
        return created
