"""
CoinMarketCap Market Data Provider
Live quotes only (historical quotes need a paid plan)
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class CoinMarketCapProvider:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        convert: str = "EUR",
        timeout_seconds: float = 15.0,
    ):
        if not (api_key or "").strip():
            raise ValueError("CoinMarketCap API key missing")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key.strip()
        self.convert = convert.upper()
        self.timeout_seconds = timeout_seconds

    async def _request_json(self, url: str, params: Optional[dict] = None) -> Optional[dict]:
        headers = {
            "Accept": "application/json",
            "X-CMC_PRO_API_KEY": self.api_key,
        }
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.get(url, headers=headers, params=params)
            response.raise_for_status()
            return response.json()

    async def get_current_prices(self, symbols: List[str]) -> Dict[str, Decimal]:
        wanted = [s.upper() for s in symbols if s]
        if not wanted:
            return {}

        payload = await self._request_json(
            f"{self.base_url}/cryptocurrency/quotes/latest",
            params={"symbol": ",".join(wanted), "convert": self.convert},
        )
        data = (payload or {}).get("data") or {}

        prices: Dict[str, Decimal] = {}
        for symbol, entry in data.items():
            # newer API versions wrap each symbol in a list
            if isinstance(entry, list):
                entry = entry[0] if entry else None
            if not entry:
                continue
            price = ((entry.get("quote") or {}).get(self.convert) or {}).get("price")
            if price is None:
                continue
            prices[symbol.upper()] = Decimal(str(price))
        return prices
