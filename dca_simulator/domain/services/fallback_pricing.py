"""
FALLBACK PRICING

Synthesizes a price when no market data is available:
- Linear interpolation between the anchor prices bracketing the date
- Single anchor used directly when the date is outside the anchor range
- Neutral default for symbols without anchors
- Bounded multiplicative jitter from an injected random generator
- Clamped to a positive floor
"""

import logging
import random
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from dca_simulator.domain.models import AnchorPrice

logger = logging.getLogger(__name__)


class AnchorTable:
    """Per-symbol anchor prices, kept sorted by date"""

    def __init__(self, anchors: Optional[Mapping[str, Iterable[AnchorPrice]]] = None):
        self._anchors: Dict[str, List[AnchorPrice]] = {}
        for symbol, points in (anchors or {}).items():
            self._anchors[symbol] = sorted(points, key=lambda p: p.date)

    @property
    def symbols(self) -> List[str]:
        return list(self._anchors.keys())

    def get(self, symbol: str) -> List[AnchorPrice]:
        return list(self._anchors.get(symbol, []))

    def bracket(
        self,
        symbol: str,
        target: date
    ) -> Tuple[Optional[AnchorPrice], Optional[AnchorPrice]]:
        """Last anchor on/before target and first anchor after it"""
        before: Optional[AnchorPrice] = None
        after: Optional[AnchorPrice] = None
        for anchor in self._anchors.get(symbol, []):
            if anchor.date <= target:
                before = anchor
            else:
                after = anchor
                break
        return before, after

    def interpolate(self, symbol: str, target: date) -> Optional[Decimal]:
        """
        Anchor-based price for target, or None when the symbol has no anchors.
        """
        before, after = self.bracket(symbol, target)
        if before is not None and after is not None:
            total_days = (after.date - before.date).days
            elapsed_days = (target - before.date).days
            if total_days <= 0:
                return before.price
            ratio = Decimal(elapsed_days) / Decimal(total_days)
            return before.price + (after.price - before.price) * ratio
        if before is not None:
            return before.price
        if after is not None:
            return after.price
        return None


class FallbackPriceGenerator:
    """
    Deterministic-by-seed synthetic prices.

    Pass a seeded random.Random (or jitter_pct=0) for reproducible output.
    """

    def __init__(
        self,
        anchors: AnchorTable,
        jitter_pct: Decimal = Decimal("5"),
        default_price: Decimal = Decimal("100"),
        price_floor: Decimal = Decimal("0.01"),
        rng: Optional[random.Random] = None,
    ):
        if jitter_pct < Decimal("0") or jitter_pct >= Decimal("100"):
            raise ValueError("Jitter percentage must be in [0, 100)")
        if price_floor <= Decimal("0"):
            raise ValueError("Price floor must be positive")
        self.anchors = anchors
        self.jitter_pct = jitter_pct
        self.default_price = default_price
        self.price_floor = price_floor
        self._rng = rng or random.Random()

    def base_price(self, symbol: str, target: date) -> Decimal:
        price = self.anchors.interpolate(symbol, target)
        if price is None:
            logger.debug("No anchors for %s, using default %s", symbol, self.default_price)
            return self.default_price
        return price

    def _volatility(self) -> Decimal:
        if self.jitter_pct == Decimal("0"):
            return Decimal("1")
        # uniform in [1 - jitter, 1 + jitter)
        draw = Decimal(str(self._rng.random())) - Decimal("0.5")
        return Decimal("1") + draw * Decimal("2") * self.jitter_pct / Decimal("100")

    def generate(self, symbol: str, target: date) -> Decimal:
        price = self.base_price(symbol, target) * self._volatility()
        return max(self.price_floor, price)
