"""
Provider chain - try primary, then fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Tuple, Union

from dca_simulator.infrastructure.market_data.types import (
    HistoricalQuoteProvider,
    LiveQuoteProvider,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamedProvider:
    name: str
    provider: Union[LiveQuoteProvider, HistoricalQuoteProvider]


class ChainedLiveQuoteProvider:
    def __init__(self, providers: List[NamedProvider]):
        self.providers = providers
        self.last_price_sources: Dict[str, str] = {}

    def get_last_sources(self) -> Dict[str, str]:
        return dict(self.last_price_sources)

    async def get_current_prices(self, symbols: List[str]) -> Dict[str, Decimal]:
        results: Dict[str, Decimal] = {}
        remaining = list(symbols)
        for named in self.providers:
            if not remaining:
                break
            try:
                data = await named.provider.get_current_prices(remaining)
            except Exception as exc:
                logger.warning("Live provider %s failed: %s", named.name, exc)
                data = {}
            if data:
                results.update(data)
                for symbol in data.keys():
                    self.last_price_sources[symbol] = named.name
                remaining = [s for s in remaining if s not in results]
        return results


class ChainedHistoricalQuoteProvider:
    def __init__(self, providers: List[NamedProvider]):
        self.providers = providers
        self.last_range_sources: Dict[str, str] = {}

    def get_last_sources(self) -> Dict[str, str]:
        return dict(self.last_range_sources)

    async def get_range(self, symbol: str, start: date, end: date) -> List[Tuple[date, Decimal]]:
        for named in self.providers:
            try:
                data = await named.provider.get_range(symbol, start, end)
            except Exception as exc:
                logger.warning("Historical provider %s failed for %s: %s", named.name, symbol, exc)
                continue
            if data:
                self.last_range_sources[symbol] = named.name
                return data
        return []
