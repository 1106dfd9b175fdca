"""In-memory price oracle with operator-set prices."""
from __future__ import annotations

import logging

from ..errors import PriceUnavailable

logger = logging.getLogger(__name__)


class StaticPriceOracle:
    """Serve 1e18-scaled prices set explicitly by the operator."""

    def __init__(self, prices: dict[str, int] | None = None) -> None:
        self._prices: dict[str, int] = {}
        for token, price in (prices or {}).items():
            self.set_price(token, price)

    def set_price(self, token: str, price: int) -> None:
        if price <= 0:
            raise ValueError(f"Price for {token} must be positive, got {price}")
        self._prices[token] = price
        logger.debug("Price set: %s = %d", token, price)

    def get_latest_price(self, token: str) -> int:
        try:
            return self._prices[token]
        except KeyError:
            raise PriceUnavailable(f"No price for {token}") from None
