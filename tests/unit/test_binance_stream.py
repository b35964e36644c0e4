import pytest

from dca_simulator.infrastructure.market_data.binance_stream import BinanceTickerStream, build_stream_url


def test_stream_url_uses_lowercase_usdt_pairs():
    url = build_stream_url("wss://stream.binance.com:9443/", ["BTC", "eth", "USDT", "BTC"])
    assert url == "wss://stream.binance.com:9443/stream?streams=btcusdt@ticker/ethusdt@ticker"


def test_stream_url_none_without_symbols():
    assert build_stream_url("wss://stream.binance.com:9443", ["USDT"]) is None


@pytest.mark.asyncio
async def test_stream_without_symbols_does_not_start():
    async def on_message(message):
        return None

    stream = BinanceTickerStream("wss://stream.binance.com:9443", [], on_message)
    stream.start()
    assert stream.url is None
    await stream.stop()
