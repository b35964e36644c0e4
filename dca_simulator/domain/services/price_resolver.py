"""
PRICE RESOLVER
Resolve a usable price for (symbol, date)

RESOLUTION ORDER:
1. Price store hit (cached)
2. Live quote when the date is inside the trailing live window (live)
3. Historical range query bracketing the date (historical)
4. Anchor interpolation with jitter (fallback)

RULES:
✅ Never raises for price-source failures
✅ Every resolved price is written back to the store
✅ Concurrent calls for the same (symbol, date) share one lookup
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional, Tuple

from dca_simulator.domain.models import PriceSource, ResolvedPrice
from dca_simulator.domain.services.fallback_pricing import FallbackPriceGenerator
from dca_simulator.infrastructure.market_data.types import (
    HistoricalQuoteProvider,
    LiveQuoteProvider,
    PriceStore,
)
from dca_simulator.utils.time import today_utc

logger = logging.getLogger(__name__)


@dataclass
class _Flight:
    task: asyncio.Future
    waiters: int = 0


def _positive_decimal(value: object) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= Decimal("0"):
        return None
    return price


class PriceResolver:
    """
    Layered price resolution with write-back caching and single-flight.
    """

    def __init__(
        self,
        store: PriceStore,
        fallback: FallbackPriceGenerator,
        live_provider: Optional[LiveQuoteProvider] = None,
        historical_provider: Optional[HistoricalQuoteProvider] = None,
        live_window_days: int = 7,
        clock: Callable[[], date] = today_utc,
    ):
        self._store = store
        self._fallback = fallback
        self._live = live_provider
        self._historical = historical_provider
        self._live_window = timedelta(days=live_window_days)
        self._clock = clock
        self._inflight: Dict[Tuple[str, date], _Flight] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def resolve(self, symbol: str, target_date: date) -> ResolvedPrice:
        key = (symbol, target_date)
        flight = self._inflight.get(key)
        if flight is None or flight.task.cancelled():
            flight = _Flight(task=asyncio.ensure_future(self._resolve_uncoalesced(symbol, target_date)))
            self._inflight[key] = flight
            flight.task.add_done_callback(lambda _t, k=key, f=flight: self._forget(k, f))

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            # last waiter gone: abandon the external fetch
            if flight.waiters == 1 and not flight.task.done():
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    async def resolve_price(self, symbol: str, target_date: date) -> Decimal:
        resolved = await self.resolve(symbol, target_date)
        return resolved.price

    def _forget(self, key: Tuple[str, date], flight: _Flight) -> None:
        if self._inflight.get(key) is flight:
            del self._inflight[key]

    def _is_recent(self, target_date: date) -> bool:
        return target_date >= self._clock() - self._live_window

    async def _resolve_uncoalesced(self, symbol: str, target_date: date) -> ResolvedPrice:
        cached = await self._read_store(symbol, target_date)
        if cached is not None:
            return ResolvedPrice(symbol, target_date, cached, PriceSource.CACHED)

        price: Optional[Decimal] = None
        source = PriceSource.FALLBACK

        if self._is_recent(target_date):
            price = await self._fetch_live(symbol)
            if price is not None:
                source = PriceSource.LIVE

        if price is None:
            price = await self._fetch_historical(symbol, target_date)
            if price is not None:
                source = PriceSource.HISTORICAL

        if price is None:
            price = self._fallback.generate(symbol, target_date)
            source = PriceSource.FALLBACK
            logger.info("Fallback price for %s on %s: %s", symbol, target_date, price)

        await self._write_store(symbol, target_date, price)
        return ResolvedPrice(symbol, target_date, price, source)

    # ------------------------------------------------------------------
    # SOURCES
    # ------------------------------------------------------------------

    async def _read_store(self, symbol: str, target_date: date) -> Optional[Decimal]:
        try:
            return _positive_decimal(await self._store.get(symbol, target_date))
        except Exception as exc:
            logger.warning("Price store read failed for %s on %s: %s", symbol, target_date, exc)
            return None

    async def _write_store(self, symbol: str, target_date: date, price: Decimal) -> None:
        try:
            await self._store.put(symbol, target_date, price)
        except Exception as exc:
            logger.warning("Price store write failed for %s on %s: %s", symbol, target_date, exc)

    async def _fetch_live(self, symbol: str) -> Optional[Decimal]:
        if self._live is None:
            return None
        try:
            prices = await self._live.get_current_prices([symbol])
        except Exception as exc:
            logger.warning("Live quote failed for %s: %s", symbol, exc)
            return None
        price = _positive_decimal((prices or {}).get(symbol))
        if price is None:
            logger.debug("No usable live quote for %s", symbol)
        return price

    async def _fetch_historical(self, symbol: str, target_date: date) -> Optional[Decimal]:
        if self._historical is None:
            return None
        try:
            points = await self._historical.get_range(
                symbol,
                target_date - timedelta(days=1),
                target_date + timedelta(days=1),
            )
        except Exception as exc:
            logger.warning("Historical quote failed for %s on %s: %s", symbol, target_date, exc)
            return None

        best: Optional[Tuple[int, date, Decimal]] = None
        for point_date, raw_price in points or []:
            price = _positive_decimal(raw_price)
            if price is None:
                continue
            candidate = (abs((point_date - target_date).days), point_date, price)
            if best is None or candidate[:2] < best[:2]:
                best = candidate
        if best is None:
            logger.debug("Empty historical range for %s on %s", symbol, target_date)
            return None
        return best[2]
