"""Drift detection between tracked and actual managed balance."""
from __future__ import annotations

import logging

from ..errors import InvalidAmount
from ..fixed_point import BPS, mul_div
from ..models import VaultGlobal

logger = logging.getLogger(__name__)


class RebalanceController:
    def __init__(self, threshold_bps: int, auto_rebalance: bool = True) -> None:
        self.threshold_bps = threshold_bps
        self.auto_rebalance = auto_rebalance

    def update_threshold(self, threshold_bps: int) -> None:
        if not 0 < threshold_bps <= BPS:
            raise InvalidAmount(f"Rebalance threshold must be within 1..{BPS} bps")
        self.threshold_bps = threshold_bps

    @staticmethod
    def deviation_bps(vault: VaultGlobal, actual_balance: int) -> int:
        tracked = vault.total_managed_asset_amount
        if tracked == 0:
            return 0
        return mul_div(abs(actual_balance - tracked), BPS, tracked)

    def check_and_rebalance(self, vault: VaultGlobal, actual_balance: int) -> bool:
        """Resync the tracked amount when drift reaches the threshold."""
        deviation = self.deviation_bps(vault, actual_balance)
        if vault.total_managed_asset_amount == 0 or deviation < self.threshold_bps:
            return False

        previous = vault.total_managed_asset_amount
        vault.total_managed_asset_amount = max(actual_balance - vault.pending_fees, 0)
        logger.debug(
            "Rebalanced managed amount %d -> %d (deviation %d bps)",
            previous, vault.total_managed_asset_amount, deviation,
        )
        return True
