"""Custodian backed by a fixed conversion-rate table."""
from __future__ import annotations

import logging

from ..errors import ConversionFailed
from ..fixed_point import SCALE, mul_div
from .token import InMemoryToken

logger = logging.getLogger(__name__)


class FixedRateCustodian:
    """Convert the holder's balances across the four supported directions.

    Directions: base → ledger, alt → ledger, ledger → base, ledger → alt.
    Every rate is 1:1 (``SCALE``); any other pair is refused.
    """

    def __init__(
        self,
        tokens: dict[str, InMemoryToken],
        holder: str,
        base_asset: str,
        ledger_asset: str,
        alt_assets: tuple[str, ...] = (),
    ) -> None:
        self.tokens = tokens
        self.holder = holder
        self.base_asset = base_asset
        self.ledger_asset = ledger_asset
        self.alt_assets = tuple(alt_assets)

    def _kind(self, asset: str) -> str | None:
        if asset == self.base_asset:
            return "base"
        if asset == self.ledger_asset:
            return "ledger"
        if asset in self.alt_assets:
            return "alt"
        return None

    def rate(self, from_asset: str, to_asset: str) -> int:
        pair = (self._kind(from_asset), self._kind(to_asset))
        if pair in {("base", "ledger"), ("alt", "ledger"), ("ledger", "base"), ("ledger", "alt")}:
            return SCALE
        raise ConversionFailed(f"No conversion rate for {from_asset} -> {to_asset}")

    def convert(self, from_asset: str, to_asset: str, amount: int) -> int:
        amount_out = mul_div(amount, self.rate(from_asset, to_asset), SCALE)
        if not self.tokens[from_asset].burn(self.holder, amount):
            raise ConversionFailed(
                f"Holder {self.holder} lacks {amount} {from_asset} to convert"
            )
        self.tokens[to_asset].mint(self.holder, amount_out)
        logger.debug("Converted %d %s -> %d %s", amount, from_asset, amount_out, to_asset)
        return amount_out
