"""
CoinGecko Market Data Provider
Free public API: live quotes and historical ranges (EUR by default)
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from datetime import date, datetime, time as dt_time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


class CoinGeckoProvider:
    """
    CoinGecko quotes keyed by our symbols (BTC -> bitcoin).
    """

    def __init__(
        self,
        base_url: str,
        coin_ids: Dict[str, str],
        vs_currency: str = "eur",
        timeout_seconds: float = 15.0,
        retries: int = 2,
        cache_ttl_seconds: int = 60,
    ):
        self.base_url = base_url.rstrip("/")
        self.coin_ids = {k.upper(): v for k, v in coin_ids.items()}
        self.vs_currency = vs_currency.lower()
        self.timeout_seconds = timeout_seconds
        self.retries = retries
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: Dict[str, Tuple[float, object]] = {}

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    def _cache_get(self, key: str) -> Optional[object]:
        cached = self._cache.get(key)
        if not cached:
            return None
        ts, value = cached
        if time.time() - ts > self.cache_ttl_seconds:
            return None
        return value

    def _cache_set(self, key: str, value: object) -> None:
        now = time.time()
        expired = [k for k, (ts, _) in self._cache.items() if now - ts > self.cache_ttl_seconds]
        for k in expired:
            del self._cache[k]
        self._cache[key] = (now, value)

    async def _get(self, url: str, params: Optional[dict] = None) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.get(url, params=params, headers={"Accept": "application/json"})

    async def _request_json(self, url: str, params: Optional[dict] = None) -> Optional[dict]:
        """
        GET with retry on transport errors and 429/5xx responses.
        Returns None for other non-200 responses.
        """
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                response = await self._get(url, params)
                if response.status_code == 200:
                    return response.json()
                if response.status_code != 429 and response.status_code < 500:
                    logger.debug("CoinGecko %s: %s", response.status_code, response.text[:200])
                    return None
                last_exc = httpx.HTTPStatusError(
                    f"CoinGecko HTTP {response.status_code}",
                    request=response.request,
                    response=response,
                )
            except httpx.HTTPError as exc:
                last_exc = exc
            if attempt < self.retries:
                await asyncio.sleep(0.4 * (2 ** attempt) + random.random() * 0.2)
        if last_exc:
            raise last_exc
        return None

    # ------------------------------------------------------------------
    # CURRENT PRICES
    # ------------------------------------------------------------------

    async def get_current_prices(self, symbols: List[str]) -> Dict[str, Decimal]:
        ids = {s: self.coin_ids[s.upper()] for s in symbols if s.upper() in self.coin_ids}
        if not ids:
            return {}

        cache_key = f"current:{','.join(sorted(ids))}"
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached  # type: ignore[return-value]

        payload = await self._request_json(
            f"{self.base_url}/simple/price",
            params={"ids": ",".join(sorted(set(ids.values()))), "vs_currencies": self.vs_currency},
        )
        if not payload:
            return {}

        prices: Dict[str, Decimal] = {}
        for symbol, coin_id in ids.items():
            value = (payload.get(coin_id) or {}).get(self.vs_currency)
            if value is None:
                continue
            prices[symbol] = Decimal(str(value))

        self._cache_set(cache_key, prices)
        return prices

    # ------------------------------------------------------------------
    # HISTORICAL PRICES
    # ------------------------------------------------------------------

    async def get_range(self, symbol: str, start: date, end: date) -> List[Tuple[date, Decimal]]:
        """
        Daily prices between start and end (inclusive), last quote of each day.
        """
        coin_id = self.coin_ids.get(symbol.upper())
        if not coin_id:
            return []

        from_ts = int(datetime.combine(start, dt_time.min, tzinfo=timezone.utc).timestamp())
        to_ts = int(datetime.combine(end + timedelta(days=1), dt_time.min, tzinfo=timezone.utc).timestamp()) - 1

        payload = await self._request_json(
            f"{self.base_url}/coins/{coin_id}/market_chart/range",
            params={"vs_currency": self.vs_currency, "from": from_ts, "to": to_ts},
        )
        if not payload:
            return []

        by_day: Dict[date, Decimal] = {}
        for entry in payload.get("prices") or []:
            try:
                ts_ms, value = entry[0], entry[1]
                day = datetime.fromtimestamp(float(ts_ms) / 1000.0, tz=timezone.utc).date()
                by_day[day] = Decimal(str(value))
            except (TypeError, ValueError, IndexError, ArithmeticError) as exc:
                logger.debug("Skipping malformed CoinGecko point %r: %s", entry, exc)
                continue

        return sorted((d, p) for d, p in by_day.items() if start <= d <= end)
