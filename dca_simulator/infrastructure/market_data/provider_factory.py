"""
Market data provider factory (settings-driven).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from dca_simulator.config import Settings, settings as default_settings
from dca_simulator.infrastructure.market_data.coingecko_provider import CoinGeckoProvider
from dca_simulator.infrastructure.market_data.coinmarketcap_provider import CoinMarketCapProvider
from dca_simulator.infrastructure.market_data.provider_chain import (
    ChainedHistoricalQuoteProvider,
    ChainedLiveQuoteProvider,
    NamedProvider,
)
from dca_simulator.infrastructure.market_data.types import (
    HistoricalQuoteProvider,
    LiveQuoteProvider,
)

logger = logging.getLogger(__name__)


def _provider_names(cfg: Settings) -> List[str]:
    return [p.strip().lower() for p in (cfg.LIVE_PROVIDERS or "").split(",") if p.strip()]


def _build_coingecko(cfg: Settings, coin_ids: Dict[str, str]) -> CoinGeckoProvider:
    return CoinGeckoProvider(
        base_url=cfg.COINGECKO_BASE_URL,
        coin_ids=coin_ids,
        vs_currency=cfg.QUOTE_CURRENCY,
        timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS,
        retries=cfg.HTTP_RETRIES,
        cache_ttl_seconds=cfg.QUOTE_CACHE_TTL_SECONDS,
    )


def _build_live_provider(name: str, cfg: Settings, coin_ids: Dict[str, str]) -> LiveQuoteProvider:
    if name == "coinmarketcap":
        return CoinMarketCapProvider(
            base_url=cfg.COINMARKETCAP_BASE_URL,
            api_key=cfg.COINMARKETCAP_API_KEY or "",
            convert=cfg.QUOTE_CURRENCY,
            timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS,
        )
    if name == "coingecko":
        return _build_coingecko(cfg, coin_ids)
    raise ValueError(f"Unknown live quote provider: {name}")


def get_live_quote_provider(
    coin_ids: Dict[str, str],
    cfg: Optional[Settings] = None,
) -> Optional[ChainedLiveQuoteProvider]:
    cfg = cfg or default_settings
    providers: List[NamedProvider] = []
    for name in _provider_names(cfg):
        try:
            providers.append(NamedProvider(name, _build_live_provider(name, cfg, coin_ids)))
        except ValueError as exc:
            # Skip providers without credentials
            logger.info("Live provider %s disabled: %s", name, exc)
    if not providers:
        logger.warning("No live quote providers configured")
        return None
    return ChainedLiveQuoteProvider(providers)


def get_historical_quote_provider(
    coin_ids: Dict[str, str],
    cfg: Optional[Settings] = None,
) -> HistoricalQuoteProvider:
    cfg = cfg or default_settings
    return ChainedHistoricalQuoteProvider([NamedProvider("coingecko", _build_coingecko(cfg, coin_ids))])
