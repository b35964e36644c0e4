from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dca_simulator.api.routes import health, market_data, plans, portfolio
from dca_simulator.domain.services.comparative_ranker import ComparativeRanker
from dca_simulator.domain.services.portfolio_evaluator import PortfolioEvaluator
from dca_simulator.domain.services.price_resolver import PriceResolver
from dca_simulator.domain.services.simulation_engine import SimulationEngine
from dca_simulator.infrastructure.cache.memory_price_store import InMemoryPriceStore
from dca_simulator.infrastructure.db.database import Base, get_db
from dca_simulator.infrastructure.db import models  # noqa: F401

from stubs import FIXED_TODAY, flat_fallback


@pytest.fixture()
def config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


@pytest.fixture()
def price_store() -> InMemoryPriceStore:
    return InMemoryPriceStore()


@pytest.fixture()
def resolver(price_store) -> PriceResolver:
    return PriceResolver(price_store, flat_fallback(), clock=lambda: FIXED_TODAY)


@pytest.fixture()
def engine(resolver) -> SimulationEngine:
    return SimulationEngine(resolver, asset_names={"BTC": "Bitcoin", "ETH": "Ethereum"}, clock=lambda: FIXED_TODAY)


@pytest.fixture()
def evaluator(engine) -> PortfolioEvaluator:
    return PortfolioEvaluator(
        engine,
        ComparativeRanker(engine, top_n=3, concurrency=2),
        default_competing=["BTC", "ETH", "SOL"],
        concurrency=2,
    )


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        future=True,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def app(db_session, evaluator) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])
    app.include_router(plans.router, prefix="/api/v1/plans", tags=["Plans"])
    app.include_router(market_data.router, prefix="/api/v1/market", tags=["Market Data"])

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.portfolio_evaluator = evaluator
    app.state.stream_runtime = None

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
