"""
REFERENCE DATA
Load, validate, and expose the asset catalogue and anchor prices

RESPONSIBILITIES:
- Load YAML reference files
- Validate integrity (duplicates, non-positive prices)
- Expose read-only typed objects

RULES:
✅ Fail fast on invalid reference data
✅ Deterministic output
"""

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from dca_simulator.domain.models import AnchorPrice, AssetDefinition
from dca_simulator.domain.services.fallback_pricing import AnchorTable

logger = logging.getLogger(__name__)


def _to_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class ReferenceDataLoader:
    """
    Reference data for assets and fallback anchors.
    """

    def __init__(self, config_dir: Path):
        self.config_dir = Path(config_dir)
        self._assets: Optional[Dict[str, AssetDefinition]] = None
        self._anchors: Optional[AnchorTable] = None

    def load_all(self) -> None:
        self._load_assets()
        self._load_anchors()
        logger.info(
            "Reference data loaded: %d assets, %d anchor series",
            len(self._assets or {}),
            len(self._anchors.symbols if self._anchors else []),
        )

    def _read_yaml(self, filename: str) -> Dict:
        path = self.config_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"Reference data not found: {path}")
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    def _load_assets(self) -> None:
        data = self._read_yaml("assets.yml")
        assets: Dict[str, AssetDefinition] = {}
        for entry in data.get("assets", []):
            symbol = str(entry["symbol"]).upper()
            if symbol in assets:
                raise ValueError(f"Duplicate asset symbol in reference data: {symbol}")
            seed = entry.get("seed_price")
            assets[symbol] = AssetDefinition(
                symbol=symbol,
                name=entry.get("name", symbol),
                coingecko_id=entry.get("coingecko_id"),
                seed_price=Decimal(str(seed)) if seed is not None else None,
            )
        self._assets = assets

    def _load_anchors(self) -> None:
        data = self._read_yaml("anchor_prices.yml")
        anchors: Dict[str, List[AnchorPrice]] = {}
        for symbol, points in (data.get("anchors") or {}).items():
            series: List[AnchorPrice] = []
            seen = set()
            for point in points or []:
                anchor_date = _to_date(point["date"])
                price = Decimal(str(point["price"]))
                if price <= Decimal("0"):
                    raise ValueError(f"Anchor price must be positive: {symbol} {anchor_date}")
                if anchor_date in seen:
                    raise ValueError(f"Duplicate anchor date: {symbol} {anchor_date}")
                seen.add(anchor_date)
                series.append(AnchorPrice(date=anchor_date, price=price))
            anchors[str(symbol).upper()] = series
        self._anchors = AnchorTable(anchors)

    @property
    def assets(self) -> Dict[str, AssetDefinition]:
        if self._assets is None:
            raise RuntimeError("Reference data not loaded")
        return dict(self._assets)

    @property
    def anchors(self) -> AnchorTable:
        if self._anchors is None:
            raise RuntimeError("Reference data not loaded")
        return self._anchors

    @property
    def asset_names(self) -> Dict[str, str]:
        return {symbol: asset.name for symbol, asset in self.assets.items()}

    @property
    def coingecko_ids(self) -> Dict[str, str]:
        return {
            symbol: asset.coingecko_id
            for symbol, asset in self.assets.items()
            if asset.coingecko_id
        }
