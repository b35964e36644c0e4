"""
Realtime runtime: ticker stream, tick ingestion, price channel and status.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from dca_simulator.config import Settings, settings as default_settings
from dca_simulator.domain.models import PriceUpdate
from dca_simulator.infrastructure.market_data.binance_stream import BinanceTickerStream
from dca_simulator.infrastructure.market_data.tick_ingestion import TickIngestor
from dca_simulator.realtime.price_channel import PriceUpdateChannel, PriceUpdateWorker

logger = logging.getLogger(__name__)


class StreamRuntime:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        symbols: List[str],
        cfg: Optional[Settings] = None,
    ):
        self._cfg = cfg or default_settings
        self._session_factory = session_factory
        self._symbols = list(symbols)
        self._channel: Optional[PriceUpdateChannel] = None
        self._worker: Optional[PriceUpdateWorker] = None
        self._ingestor: Optional[TickIngestor] = None
        self._stream: Optional[BinanceTickerStream] = None
        self._latest: Dict[str, PriceUpdate] = {}
        self._enabled = False
        self._status: Dict[str, Any] = {
            "enabled": False,
            "connected": False,
            "last_status": None,
        }

    def is_enabled(self) -> bool:
        return self._enabled

    def latest_prices(self) -> Dict[str, Decimal]:
        return {symbol: update.price for symbol, update in self._latest.items()}

    async def start(self) -> None:
        self._enabled = bool(self._cfg.STREAM_ENABLED)
        self._status["enabled"] = self._enabled
        if not self._enabled:
            return

        self._channel = PriceUpdateChannel()
        self._worker = PriceUpdateWorker(self._channel, self._on_price_update)
        self._worker.start()

        self._ingestor = TickIngestor(
            self._session_factory,
            channel=self._channel,
            max_price=Decimal(str(self._cfg.MAX_TICK_PRICE)),
        )
        self._stream = BinanceTickerStream(
            base_url=self._cfg.BINANCE_WS_URL,
            symbols=self._symbols,
            on_message=self._ingestor.ingest_message,
            on_status=self._on_status,
            reconnect_delay=self._cfg.STREAM_RECONNECT_DELAY,
        )
        if self._stream.url is None:
            self._status["last_status"] = "no_symbols"
            return
        self._stream.start()
        logger.info("Ticker stream started for %d symbols", len(self._symbols))

    async def stop(self) -> None:
        if self._stream:
            await self._stream.stop()
        if self._worker:
            await self._worker.stop()

    async def _on_price_update(self, update: PriceUpdate) -> None:
        self._latest[update.symbol] = update

    async def _on_status(self, status: Dict[str, Any]) -> None:
        state = status.get("status")
        self._status["connected"] = state == "connected"
        self._status["last_status"] = state
        self._status["ts"] = datetime.now(timezone.utc).isoformat()

    def get_status(self) -> Dict[str, Any]:
        status = dict(self._status)
        if self._ingestor:
            status["ticks_accepted"] = self._ingestor.accepted
            status["ticks_rejected"] = self._ingestor.rejected
        status["latest_prices"] = {s: float(p) for s, p in sorted(self.latest_prices().items())}
        return status
