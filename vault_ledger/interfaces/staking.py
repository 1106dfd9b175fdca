"""Staking service protocol — BTC in, liquid staking token out."""
from typing import Protocol


class StakingService(Protocol):
    """Pulls BTC the caller approved for ``address`` and mints lstBTC back."""

    address: str

    def stake(self, amount: int) -> int: ...

    def unstake(self, minted_amount: int) -> int: ...
