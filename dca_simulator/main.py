"""
FastAPI Main Application
DCA simulation, comparison and optional live ticker ingestion
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from dca_simulator.config import settings
from dca_simulator.core.logging import setup_logging
from dca_simulator.domain.services.reference_data import ReferenceDataLoader
from dca_simulator.infrastructure.db import database
from dca_simulator.infrastructure.db.repositories.asset_repository import AssetRepository
from dca_simulator.realtime.runtime import StreamRuntime
from dca_simulator.services.evaluation_factory import build_portfolio_evaluator

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of the database, evaluator and stream
    """
    logger.info("=" * 60)
    logger.info("Starting DCA Simulator")
    logger.info("=" * 60)

    # 1. Database
    await database.init_db()
    logger.info("Database initialized")

    # 2. Reference data
    reference = ReferenceDataLoader(settings.REFERENCE_DATA_DIR)
    reference.load_all()
    app.state.reference_data = reference

    async with database.async_session_factory() as session:
        created = await AssetRepository(session).seed(reference.assets.values())
        await session.commit()
    if created:
        logger.info("Seeded %d assets", created)

    # 3. Evaluator
    app.state.portfolio_evaluator = build_portfolio_evaluator(
        reference, session_factory=database.async_session_factory
    )

    # 4. Live ticker stream (optional)
    stream_runtime = StreamRuntime(database.async_session_factory, list(reference.assets.keys()))
    try:
        await stream_runtime.start()
        app.state.stream_runtime = stream_runtime
    except Exception as exc:
        logger.error("Failed to start ticker stream: %s", exc)

    logger.info("API Server: http://%s:%s", settings.API_HOST, settings.API_PORT)

    yield

    logger.info("Shutting down DCA Simulator")
    await stream_runtime.stop()
    await database.close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="DCA Simulator",
    description="Dollar-cost averaging simulation and comparison for crypto assets",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/")
async def root():
    return {
        "message": "DCA Simulator",
        "version": "1.0.0",
        "docs": "/docs",
    }


from dca_simulator.api.routes import health, market_data, plans, portfolio  # noqa: E402

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])
app.include_router(plans.router, prefix="/api/v1/plans", tags=["Plans"])
app.include_router(market_data.router, prefix="/api/v1/market", tags=["Market Data"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dca_simulator.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
