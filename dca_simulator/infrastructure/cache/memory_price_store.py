"""
In-memory price store keyed by (symbol, calendar date).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple


class InMemoryPriceStore:
    def __init__(self):
        self._prices: Dict[Tuple[str, date], Decimal] = {}
        self.writes = 0

    async def get(self, symbol: str, target_date: date) -> Optional[Decimal]:
        return self._prices.get((symbol, target_date))

    async def put(self, symbol: str, target_date: date, price: Decimal) -> None:
        self._prices[(symbol, target_date)] = price
        self.writes += 1

    def seed(self, symbol: str, target_date: date, price: Decimal) -> None:
        """Preload a price without counting it as a write"""
        self._prices[(symbol, target_date)] = price

    def __len__(self) -> int:
        return len(self._prices)
