"""Collateral value versus debt value per user."""
from __future__ import annotations

from collections.abc import Callable

from ..config import CollateralConfig
from ..errors import PriceUnavailable
from ..fixed_point import MAX_UINT256, PERCENT, SCALE, mul_div
from ..interfaces.price_oracle import PriceOracle
from ..models import LedgerState, UserPosition

DebtFn = Callable[[LedgerState, str, str], int]


class HealthFactorEngine:
    """USD valuation of positions using the price oracle.

    ``health_factor`` is scaled by 1e18 and multiplied by 100, so a position
    with collateral worth 1.5x its debt reports ``150 * SCALE``.
    """

    MAX_HEALTH_FACTOR = MAX_UINT256

    def __init__(
        self,
        oracle: PriceOracle,
        collateral: CollateralConfig,
        btc_asset: str,
        lst_asset: str,
    ) -> None:
        self.oracle = oracle
        self.btc_ratio_pct = collateral.btc_ratio_pct
        self.lst_btc_ratio_pct = collateral.lst_btc_ratio_pct
        self.btc_asset = btc_asset
        self.lst_asset = lst_asset

    def price(self, token: str) -> int:
        price = self.oracle.get_latest_price(token)
        if price <= 0:
            raise PriceUnavailable(f"Oracle returned non-positive price for {token}")
        return price

    def value_usd(self, token: str, amount: int) -> int:
        if amount == 0:
            return 0
        return mul_div(amount, self.price(token), SCALE)

    def collateral_values(self, position: UserPosition) -> tuple[int, int]:
        return (
            self.value_usd(self.btc_asset, position.btc_collateral),
            self.value_usd(self.lst_asset, position.lst_btc_collateral),
        )

    def collateral_value_usd(self, position: UserPosition) -> int:
        btc_value, lst_value = self.collateral_values(position)
        return btc_value + lst_value

    def max_borrowable_usd(self, position: UserPosition) -> int:
        btc_value, lst_value = self.collateral_values(position)
        return mul_div(btc_value, PERCENT, self.btc_ratio_pct) + mul_div(
            lst_value, PERCENT, self.lst_btc_ratio_pct
        )

    def total_debt_value_usd(self, state: LedgerState, user: str, debt_of: DebtFn) -> int:
        position = state.positions.get(user)
        if position is None:
            return 0
        return sum(
            self.value_usd(token, debt_of(state, user, token))
            for token in position.borrowed_tokens
        )

    def compute(self, collateral_usd: int, debt_usd: int) -> int:
        if debt_usd == 0:
            return self.MAX_HEALTH_FACTOR
        return mul_div(collateral_usd * PERCENT, SCALE, debt_usd)

    def refresh(self, state: LedgerState, user: str, debt_of: DebtFn) -> int:
        """Recompute and cache the user's health factor."""
        position = state.position(user)
        position.health_factor = self.compute(
            self.collateral_value_usd(position),
            self.total_debt_value_usd(state, user, debt_of),
        )
        return position.health_factor
