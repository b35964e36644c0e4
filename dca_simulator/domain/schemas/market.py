from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from dca_simulator.domain.models import Asset


class AssetSchema(BaseModel):
    symbol: str
    name: str
    current_price: float
    last_updated: Optional[datetime] = None

    @classmethod
    def from_asset(cls, asset: Asset) -> "AssetSchema":
        return cls(
            symbol=asset.symbol,
            name=asset.name,
            current_price=float(asset.current_price),
            last_updated=asset.last_updated,
        )
