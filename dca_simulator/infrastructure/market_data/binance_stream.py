"""
Binance combined ticker stream client (best-effort).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import websockets

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Any], Awaitable[Any]]
StatusHandler = Callable[[Dict[str, Any]], Awaitable[None]]

# Binance rejects very long combined-stream URLs
_MAX_URL_LENGTH = 2000


def build_stream_url(base_url: str, symbols: List[str], quote_asset: str = "USDT") -> Optional[str]:
    quote = quote_asset.upper()
    streams = [
        f"{s.lower()}{quote.lower()}@ticker"
        for s in dict.fromkeys(s.upper() for s in symbols if s)
        if s != quote
    ]
    if not streams:
        return None
    url = f"{base_url.rstrip('/')}/stream?streams={'/'.join(streams)}"
    while len(url) > _MAX_URL_LENGTH and len(streams) > 1:
        streams = streams[:-1]
        url = f"{base_url.rstrip('/')}/stream?streams={'/'.join(streams)}"
    return url


class BinanceTickerStream:
    def __init__(
        self,
        base_url: str,
        symbols: List[str],
        on_message: MessageHandler,
        on_status: Optional[StatusHandler] = None,
        reconnect_delay: int = 5,
    ) -> None:
        self._url = build_stream_url(base_url, symbols)
        self._on_message = on_message
        self._on_status = on_status
        self._reconnect_delay = reconnect_delay
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def url(self) -> Optional[str]:
        return self._url

    def start(self) -> None:
        if self._url is None:
            logger.warning("No symbols to stream; ticker stream not started")
            return
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self._connect_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Ticker stream error: %s", exc)
                await self._emit_status({"status": "error", "error": str(exc)})
            if not self._stop_event.is_set():
                await asyncio.sleep(self._reconnect_delay)

    async def _connect_once(self) -> None:
        async with websockets.connect(self._url) as ws:
            await self._emit_status({"status": "connected", "url": self._url})
            try:
                async for message in ws:
                    try:
                        await self._on_message(message)
                    except Exception as exc:
                        logger.warning("Error processing stream message: %s", exc)
            finally:
                await self._emit_status({"status": "disconnected"})

    async def _emit_status(self, status: Dict[str, Any]) -> None:
        if self._on_status:
            await self._on_status(status)
