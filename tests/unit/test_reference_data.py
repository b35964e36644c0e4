from datetime import date
from decimal import Decimal

import pytest

from dca_simulator.domain.services.reference_data import ReferenceDataLoader


def test_loads_repository_reference_data(config_dir):
    loader = ReferenceDataLoader(config_dir)
    loader.load_all()

    assert set(loader.assets) == {"BTC", "ETH", "SOL", "XRP", "BNB", "DOGE", "TON", "TRX", "ADA", "SHIB"}
    assert loader.asset_names["BTC"] == "Bitcoin"
    assert loader.coingecko_ids["ETH"] == "ethereum"
    for symbol in loader.assets:
        anchors = loader.anchors.get(symbol)
        assert anchors, symbol
        assert all(a.price > 0 for a in anchors)
        assert [a.date for a in anchors] == sorted(a.date for a in anchors)


def test_properties_require_loading(config_dir):
    with pytest.raises(RuntimeError):
        ReferenceDataLoader(config_dir).assets


def _write(tmp_path, assets: str, anchors: str):
    (tmp_path / "assets.yml").write_text(assets)
    (tmp_path / "anchor_prices.yml").write_text(anchors)


def test_duplicate_symbol_rejected(tmp_path):
    _write(
        tmp_path,
        "assets:\n  - {symbol: btc, name: Bitcoin}\n  - {symbol: BTC, name: Bitcoin again}\n",
        "anchors: {}\n",
    )
    with pytest.raises(ValueError):
        ReferenceDataLoader(tmp_path).load_all()


def test_non_positive_anchor_rejected(tmp_path):
    _write(
        tmp_path,
        "assets:\n  - {symbol: BTC, name: Bitcoin}\n",
        "anchors:\n  BTC:\n    - {date: 2024-01-01, price: 0}\n",
    )
    with pytest.raises(ValueError):
        ReferenceDataLoader(tmp_path).load_all()


def test_unsorted_anchors_are_sorted(tmp_path):
    _write(
        tmp_path,
        "assets:\n  - {symbol: BTC, name: Bitcoin, seed_price: 43000}\n",
        "anchors:\n  btc:\n    - {date: 2024-02-01, price: 200}\n    - {date: 2024-01-01, price: 100}\n",
    )
    loader = ReferenceDataLoader(tmp_path)
    loader.load_all()

    assert loader.assets["BTC"].seed_price == Decimal("43000")
    assert [a.date for a in loader.anchors.get("BTC")] == [date(2024, 1, 1), date(2024, 2, 1)]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ReferenceDataLoader(tmp_path).load_all()
