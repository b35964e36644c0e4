from datetime import date, datetime, timezone
from decimal import Decimal

import httpx
import pytest

from dca_simulator.config import Settings
from dca_simulator.infrastructure.market_data.coingecko_provider import CoinGeckoProvider
from dca_simulator.infrastructure.market_data.coinmarketcap_provider import CoinMarketCapProvider
from dca_simulator.infrastructure.market_data.provider_chain import (
    ChainedHistoricalQuoteProvider,
    ChainedLiveQuoteProvider,
    NamedProvider,
)
from dca_simulator.infrastructure.market_data.provider_factory import (
    get_historical_quote_provider,
    get_live_quote_provider,
)

COIN_IDS = {"BTC": "bitcoin", "ETH": "ethereum"}


def _gecko(**kwargs) -> CoinGeckoProvider:
    return CoinGeckoProvider(base_url="https://api.coingecko.com/api/v3", coin_ids=COIN_IDS, **kwargs)


def _ms(day: date, hour: int) -> int:
    return int(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.mark.asyncio
async def test_coingecko_current_prices(monkeypatch):
    provider = _gecko()
    seen = {}

    async def fake_request_json(url, params=None):
        seen["url"] = url
        seen["params"] = params
        return {"bitcoin": {"eur": 61234.5}, "ethereum": {"usd": 3000}}

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    prices = await provider.get_current_prices(["BTC", "ETH", "DOGE"])

    assert prices == {"BTC": Decimal("61234.5")}
    assert seen["url"].endswith("/simple/price")
    assert seen["params"] == {"ids": "bitcoin,ethereum", "vs_currencies": "eur"}


@pytest.mark.asyncio
async def test_coingecko_current_prices_are_cached(monkeypatch):
    provider = _gecko(cache_ttl_seconds=60)
    calls = []

    async def fake_request_json(url, params=None):
        calls.append(url)
        return {"bitcoin": {"eur": 1}}

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    await provider.get_current_prices(["BTC"])
    await provider.get_current_prices(["BTC"])
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_coingecko_cache_drops_expired_entries(monkeypatch):
    provider = _gecko(cache_ttl_seconds=60)
    clock = {"now": 1_000.0}

    async def fake_request_json(url, params=None):
        return {"bitcoin": {"eur": 1}, "ethereum": {"eur": 2}}

    monkeypatch.setattr(provider, "_request_json", fake_request_json)
    monkeypatch.setattr("dca_simulator.infrastructure.market_data.coingecko_provider.time.time", lambda: clock["now"])

    await provider.get_current_prices(["BTC"])
    clock["now"] += 120
    await provider.get_current_prices(["ETH"])

    assert list(provider._cache) == ["current:ETH"]


@pytest.mark.asyncio
async def test_coingecko_range_keeps_last_quote_per_day(monkeypatch):
    provider = _gecko()

    async def fake_request_json(url, params=None):
        assert url.endswith("/coins/bitcoin/market_chart/range")
        assert params["vs_currency"] == "eur"
        return {
            "prices": [
                [_ms(date(2024, 1, 14), 23), 99],
                [_ms(date(2024, 1, 15), 1), 100],
                [_ms(date(2024, 1, 15), 22), 101],
                [_ms(date(2024, 1, 16), 12), 102],
                [_ms(date(2024, 1, 17), 0), 103],
                ["bad"],
            ]
        }

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    points = await provider.get_range("BTC", date(2024, 1, 15), date(2024, 1, 16))

    assert points == [(date(2024, 1, 15), Decimal("101")), (date(2024, 1, 16), Decimal("102"))]


@pytest.mark.asyncio
async def test_coingecko_unknown_symbol_makes_no_request(monkeypatch):
    provider = _gecko()

    async def fail(url, params=None):
        raise AssertionError("no request expected")

    monkeypatch.setattr(provider, "_request_json", fail)
    assert await provider.get_current_prices(["XYZ"]) == {}
    assert await provider.get_range("XYZ", date(2024, 1, 1), date(2024, 1, 2)) == []


@pytest.mark.asyncio
async def test_coingecko_retries_rate_limit_then_raises(monkeypatch):
    provider = _gecko(retries=2)
    calls = []

    async def fake_get(url, params=None):
        calls.append(url)
        return httpx.Response(429, request=httpx.Request("GET", url))

    async def no_sleep(_seconds):
        return None

    monkeypatch.setattr(provider, "_get", fake_get)
    monkeypatch.setattr("dca_simulator.infrastructure.market_data.coingecko_provider.asyncio.sleep", no_sleep)

    with pytest.raises(httpx.HTTPStatusError):
        await provider.get_current_prices(["BTC"])
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_coingecko_client_error_returns_empty(monkeypatch):
    provider = _gecko()

    async def fake_get(url, params=None):
        return httpx.Response(404, request=httpx.Request("GET", url), text="not found")

    monkeypatch.setattr(provider, "_get", fake_get)
    assert await provider.get_current_prices(["BTC"]) == {}


def test_coinmarketcap_requires_api_key():
    with pytest.raises(ValueError):
        CoinMarketCapProvider(base_url="https://pro-api.coinmarketcap.com/v1", api_key="  ")


@pytest.mark.asyncio
async def test_coinmarketcap_parsing(monkeypatch):
    provider = CoinMarketCapProvider(base_url="https://pro-api.coinmarketcap.com/v1", api_key="key")

    async def fake_request_json(url, params=None):
        assert params == {"symbol": "BTC,ETH,SOL", "convert": "EUR"}
        return {
            "data": {
                "BTC": {"quote": {"EUR": {"price": 60000.12}}},
                "ETH": [{"quote": {"EUR": {"price": 3100}}}],
                "SOL": {"quote": {}},
            }
        }

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    prices = await provider.get_current_prices(["btc", "ETH", "SOL"])
    assert prices == {"BTC": Decimal("60000.12"), "ETH": Decimal("3100")}


class _Live:
    def __init__(self, prices=None, fail=False):
        self.prices = prices or {}
        self.fail = fail
        self.asked = []

    async def get_current_prices(self, symbols):
        self.asked.append(list(symbols))
        if self.fail:
            raise RuntimeError("boom")
        return {s: self.prices[s] for s in symbols if s in self.prices}


class _Historical:
    def __init__(self, points=None, fail=False):
        self.points = points or []
        self.fail = fail

    async def get_range(self, symbol, start, end):
        if self.fail:
            raise RuntimeError("boom")
        return list(self.points)


@pytest.mark.asyncio
async def test_live_chain_fills_gaps_from_fallback_provider():
    primary = _Live({"BTC": Decimal("1")})
    secondary = _Live({"BTC": Decimal("2"), "ETH": Decimal("3")})
    chain = ChainedLiveQuoteProvider([NamedProvider("primary", primary), NamedProvider("secondary", secondary)])

    prices = await chain.get_current_prices(["BTC", "ETH"])

    assert prices == {"BTC": Decimal("1"), "ETH": Decimal("3")}
    assert secondary.asked == [["ETH"]]
    assert chain.get_last_sources() == {"BTC": "primary", "ETH": "secondary"}


@pytest.mark.asyncio
async def test_live_chain_survives_provider_failure():
    chain = ChainedLiveQuoteProvider(
        [NamedProvider("bad", _Live(fail=True)), NamedProvider("good", _Live({"BTC": Decimal("5")}))]
    )
    assert await chain.get_current_prices(["BTC"]) == {"BTC": Decimal("5")}


@pytest.mark.asyncio
async def test_historical_chain_returns_first_non_empty():
    point = (date(2024, 1, 1), Decimal("10"))
    chain = ChainedHistoricalQuoteProvider(
        [
            NamedProvider("bad", _Historical(fail=True)),
            NamedProvider("empty", _Historical()),
            NamedProvider("good", _Historical([point])),
        ]
    )
    assert await chain.get_range("BTC", date(2024, 1, 1), date(2024, 1, 2)) == [point]
    assert chain.get_last_sources() == {"BTC": "good"}


def test_factory_skips_coinmarketcap_without_key():
    cfg = Settings(LIVE_PROVIDERS="coinmarketcap,coingecko", COINMARKETCAP_API_KEY=None)
    chain = get_live_quote_provider(COIN_IDS, cfg)

    assert [p.name for p in chain.providers] == ["coingecko"]


def test_factory_orders_providers_from_settings():
    cfg = Settings(LIVE_PROVIDERS="coingecko, coinmarketcap", COINMARKETCAP_API_KEY="key")
    chain = get_live_quote_provider(COIN_IDS, cfg)

    assert [p.name for p in chain.providers] == ["coingecko", "coinmarketcap"]
    assert isinstance(chain.providers[1].provider, CoinMarketCapProvider)


def test_factory_without_live_providers_returns_none():
    assert get_live_quote_provider(COIN_IDS, Settings(LIVE_PROVIDERS="")) is None


def test_historical_factory_uses_coingecko():
    chain = get_historical_quote_provider(COIN_IDS, Settings())
    assert [p.name for p in chain.providers] == ["coingecko"]
