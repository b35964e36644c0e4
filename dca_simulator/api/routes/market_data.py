"""
Market Data routes - asset catalogue with last-known prices & stream status.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dca_simulator.domain.schemas.market import AssetSchema
from dca_simulator.infrastructure.db.database import get_db
from dca_simulator.infrastructure.db.repositories.asset_repository import AssetRepository

router = APIRouter()


@router.get("/assets", response_model=List[AssetSchema])
async def list_assets(db: AsyncSession = Depends(get_db)):
    """All known assets with their last-known price."""
    assets = await AssetRepository(db).list_all()
    return [AssetSchema.from_asset(a) for a in assets]


@router.get("/stream/status")
async def stream_status(request: Request):
    """Live ticker stream health."""
    runtime = getattr(request.app.state, "stream_runtime", None)
    if runtime:
        return runtime.get_status()
    return {"enabled": False, "connected": False, "last_status": None}
