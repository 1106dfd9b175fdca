"""Price oracle protocol — price feed abstraction."""
from typing import Protocol


class PriceOracle(Protocol):
    """Read-only source of 1e18-scaled USD prices."""

    def get_latest_price(self, token: str) -> int: ...
