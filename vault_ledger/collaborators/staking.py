"""Staking service minting a liquid staking token at a fixed ratio."""
from __future__ import annotations

from ..fixed_point import SCALE, mul_div
from .token import InMemoryToken


class RatioStakingService:
    """Pull approved BTC from ``holder`` and mint lstBTC back to it.

    ``ratio`` is lstBTC minted per BTC, scaled by 1e18.
    """

    def __init__(
        self,
        address: str,
        btc: InMemoryToken,
        lst_btc: InMemoryToken,
        holder: str,
        ratio: int = SCALE,
    ) -> None:
        self.address = address
        self.btc = btc
        self.lst_btc = lst_btc
        self.holder = holder
        self.ratio = ratio

    def stake(self, amount: int) -> int:
        if not self.btc.transfer_from(self.address, self.holder, self.address, amount):
            return 0
        minted = mul_div(amount, self.ratio, SCALE)
        self.lst_btc.mint(self.holder, minted)
        return minted

    def unstake(self, minted_amount: int) -> int:
        if not self.lst_btc.burn(self.holder, minted_amount):
            return 0
        amount = mul_div(minted_amount, SCALE, self.ratio)
        if not self.btc.transfer(self.address, self.holder, amount):
            return 0
        return amount
