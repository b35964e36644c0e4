"""
Live ticker ingestion (Binance combined-stream payloads).

Accepted ticks update the asset's last-known price and are published on a
PriceUpdateChannel. Corrupt ticks are logged and dropped.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from dca_simulator.domain.models import PriceUpdate
from dca_simulator.infrastructure.db.repositories.asset_repository import AssetRepository
from dca_simulator.realtime.price_channel import PriceUpdateChannel

logger = logging.getLogger(__name__)


def parse_ticker_message(message: Any) -> Optional[Tuple[str, str, Optional[int]]]:
    """
    Extract (stream symbol, raw last price, event time ms) from a
    combined-stream message: {"stream": "...", "data": {"s": ..., "c": ..., "E": ...}}
    """
    if isinstance(message, (bytes, bytearray)):
        message = message.decode("utf-8", errors="replace")
    try:
        payload = json.loads(message) if isinstance(message, str) else message
    except ValueError:
        logger.warning("Unparseable stream message: %.100s", message)
        return None
    if not isinstance(payload, dict):
        return None

    data = payload.get("data") if "stream" in payload else payload
    if not isinstance(data, dict):
        logger.debug("Stream message without data object: %.100s", message)
        return None

    symbol = data.get("s")
    last_price = data.get("c")
    if not symbol or last_price is None:
        logger.debug("Missing symbol or price in tick: %.100s", message)
        return None
    event_time = data.get("E")
    return str(symbol), str(last_price), event_time if isinstance(event_time, int) else None


class TickIngestor:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        channel: Optional[PriceUpdateChannel] = None,
        max_price: Decimal = Decimal("1000000"),
        quote_asset: str = "USDT",
    ):
        self._session_factory = session_factory
        self._channel = channel
        self._max_price = max_price
        self._quote_asset = quote_asset.upper()
        self.accepted = 0
        self.rejected = 0

    def coin_symbol(self, stream_symbol: str) -> str:
        symbol = stream_symbol.upper()
        if symbol.endswith(self._quote_asset) and len(symbol) > len(self._quote_asset):
            symbol = symbol[: -len(self._quote_asset)]
        return symbol

    def validate_price(self, symbol: str, raw_price: str) -> Optional[Decimal]:
        try:
            price = Decimal(raw_price.strip())
        except (InvalidOperation, AttributeError):
            logger.warning("Corrupt tick for %s: unparseable price %r", symbol, raw_price)
            return None
        if not price.is_finite() or price <= Decimal("0") or price > self._max_price:
            logger.warning("Corrupt tick for %s: implausible price %s", symbol, raw_price)
            return None
        return price

    async def ingest_message(self, message: Any) -> Optional[PriceUpdate]:
        parsed = parse_ticker_message(message)
        if parsed is None:
            self.rejected += 1
            return None
        stream_symbol, raw_price, event_ms = parsed
        return await self.ingest_tick(stream_symbol, raw_price, event_ms)

    async def ingest_tick(
        self,
        stream_symbol: str,
        raw_price: str,
        event_ms: Optional[int] = None,
    ) -> Optional[PriceUpdate]:
        symbol = self.coin_symbol(stream_symbol)
        price = self.validate_price(symbol, raw_price)
        if price is None:
            self.rejected += 1
            return None

        if event_ms is not None:
            ts = datetime.fromtimestamp(event_ms / 1000.0, tz=timezone.utc)
        else:
            ts = datetime.now(tz=timezone.utc)

        async with self._session_factory() as session:
            await AssetRepository(session).upsert_price(symbol, price, ts.replace(tzinfo=None))
            await session.commit()

        update = PriceUpdate(symbol=symbol, price=price, ts=ts)
        self.accepted += 1
        if self._channel is not None:
            self._channel.publish_nowait(update)
        logger.debug("Real-time update: %s = %s", symbol, price)
        return update
