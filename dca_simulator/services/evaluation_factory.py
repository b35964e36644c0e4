"""
Wire the evaluation pipeline from settings and reference data.
"""

import logging
import random
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from dca_simulator.config import Settings, settings as default_settings
from dca_simulator.domain.models import DayOfMonthPolicy
from dca_simulator.domain.services.comparative_ranker import ComparativeRanker
from dca_simulator.domain.services.fallback_pricing import FallbackPriceGenerator
from dca_simulator.domain.services.portfolio_evaluator import PortfolioEvaluator
from dca_simulator.domain.services.price_resolver import PriceResolver
from dca_simulator.domain.services.reference_data import ReferenceDataLoader
from dca_simulator.domain.services.schedule_generator import ScheduleGenerator
from dca_simulator.domain.services.simulation_engine import SimulationEngine
from dca_simulator.infrastructure.db.repositories.price_repository import SqlPriceStore
from dca_simulator.infrastructure.market_data.provider_factory import (
    get_historical_quote_provider,
    get_live_quote_provider,
)
from dca_simulator.infrastructure.market_data.types import (
    HistoricalQuoteProvider,
    LiveQuoteProvider,
    PriceStore,
)

logger = logging.getLogger(__name__)


def _decimal(value: float) -> Decimal:
    return Decimal(str(value))


def build_fallback_generator(reference: ReferenceDataLoader, cfg: Settings) -> FallbackPriceGenerator:
    rng = random.Random(cfg.FALLBACK_SEED) if cfg.FALLBACK_SEED is not None else random.Random()
    return FallbackPriceGenerator(
        reference.anchors,
        jitter_pct=_decimal(cfg.FALLBACK_JITTER_PCT),
        default_price=_decimal(cfg.FALLBACK_DEFAULT_PRICE),
        price_floor=_decimal(cfg.PRICE_FLOOR),
        rng=rng,
    )


def build_price_resolver(
    reference: ReferenceDataLoader,
    store: PriceStore,
    cfg: Optional[Settings] = None,
    live_provider: Optional[LiveQuoteProvider] = None,
    historical_provider: Optional[HistoricalQuoteProvider] = None,
    use_network: bool = True,
) -> PriceResolver:
    cfg = cfg or default_settings
    if use_network:
        if live_provider is None:
            live_provider = get_live_quote_provider(reference.coingecko_ids, cfg)
        if historical_provider is None:
            historical_provider = get_historical_quote_provider(reference.coingecko_ids, cfg)
    return PriceResolver(
        store,
        build_fallback_generator(reference, cfg),
        live_provider=live_provider,
        historical_provider=historical_provider,
        live_window_days=cfg.LIVE_WINDOW_DAYS,
    )


def build_portfolio_evaluator(
    reference: ReferenceDataLoader,
    session_factory: Optional[async_sessionmaker] = None,
    cfg: Optional[Settings] = None,
    store: Optional[PriceStore] = None,
    **resolver_kwargs,
) -> PortfolioEvaluator:
    """
    Build a PortfolioEvaluator backed by the SQL price store (or the
    given store) and the configured market data providers.
    """
    cfg = cfg or default_settings
    if store is None:
        if session_factory is None:
            raise ValueError("Either a price store or a session factory is required")
        store = SqlPriceStore(session_factory)

    resolver = build_price_resolver(reference, store, cfg, **resolver_kwargs)
    policy = DayOfMonthPolicy(cfg.DAY_OF_MONTH_POLICY.lower())
    engine = SimulationEngine(
        resolver,
        schedule_generator=ScheduleGenerator(policy),
        asset_names=reference.asset_names,
    )
    ranker = ComparativeRanker(
        engine,
        top_n=cfg.RANKING_TOP_N,
        concurrency=cfg.SIMULATION_CONCURRENCY,
    )
    logger.info(
        "Evaluator ready | policy=%s live_window=%dd competitors=%d",
        policy.value,
        cfg.LIVE_WINDOW_DAYS,
        len(cfg.COMPETING_SYMBOLS),
    )
    return PortfolioEvaluator(
        engine,
        ranker,
        default_competing=cfg.COMPETING_SYMBOLS,
        concurrency=cfg.SIMULATION_CONCURRENCY,
    )
