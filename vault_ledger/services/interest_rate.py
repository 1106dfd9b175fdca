"""Utilization-based borrow rate model."""
from __future__ import annotations

from dataclasses import dataclass

from ..config import MarketConfig
from ..fixed_point import SCALE, bps_to_scaled, mul_div
from ..models import TokenState


@dataclass(frozen=True)
class RateParams:
    """Annual rates as 1e18-scaled fractions."""

    base_rate: int
    multiplier: int
    max_rate: int

    @classmethod
    def from_market(cls, market: MarketConfig) -> RateParams:
        return cls(
            base_rate=bps_to_scaled(market.base_rate_bps),
            multiplier=bps_to_scaled(market.multiplier_bps),
            max_rate=bps_to_scaled(market.max_rate_bps),
        )


class InterestRateModel:
    """Pure functions of a token's current state; no side effects."""

    def __init__(self) -> None:
        self._params: dict[str, RateParams] = {}

    def register(self, token: str, params: RateParams) -> None:
        self._params[token] = params

    def params(self, token: str) -> RateParams:
        return self._params[token]

    @staticmethod
    def utilization(state: TokenState) -> int:
        """``borrows / (reserves + borrows)`` scaled by 1e18; 0 with no supply."""
        supply = state.reserves + state.total_borrows_principal
        if supply == 0:
            return 0
        return mul_div(state.total_borrows_principal, SCALE, supply)

    def borrow_rate(self, token: str, state: TokenState) -> int:
        p = self._params[token]
        rate = p.base_rate + mul_div(self.utilization(state), p.multiplier, SCALE)
        return min(rate, p.max_rate)
