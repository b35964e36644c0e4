"""
Market data and price store protocols for type hints.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Tuple


class LiveQuoteProvider(Protocol):
    async def get_current_prices(self, symbols: List[str]) -> Dict[str, Decimal]:
        ...


class HistoricalQuoteProvider(Protocol):
    async def get_range(self, symbol: str, start: date, end: date) -> List[Tuple[date, Decimal]]:
        ...


class PriceStore(Protocol):
    async def get(self, symbol: str, target_date: date) -> Optional[Decimal]:
        ...

    async def put(self, symbol: str, target_date: date, price: Decimal) -> None:
        ...
