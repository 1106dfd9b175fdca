"""Performance and management fee capture."""
from __future__ import annotations

from ..errors import InvalidAmount
from ..fixed_point import BPS, SECONDS_PER_YEAR, bps_of, mul_div
from ..models import VaultGlobal


class FeeEngine:
    def __init__(
        self,
        performance_fee_bps: int,
        management_fee_bps: int,
        management_fee_period: int,
    ) -> None:
        self.performance_fee_bps = performance_fee_bps
        self.management_fee_bps = management_fee_bps
        self.management_fee_period = management_fee_period

    def update_rates(self, performance_fee_bps: int, management_fee_bps: int) -> None:
        for value in (performance_fee_bps, management_fee_bps):
            if not 0 <= value <= BPS:
                raise InvalidAmount(f"Fee rate must be within 0..{BPS} bps, got {value}")
        self.performance_fee_bps = performance_fee_bps
        self.management_fee_bps = management_fee_bps

    def performance_fee(self, yield_generated: int) -> int:
        return bps_of(yield_generated, self.performance_fee_bps)

    def management_fee_due(self, vault: VaultGlobal, now: int) -> bool:
        elapsed = now - vault.last_management_fee_collection
        return elapsed >= self.management_fee_period and vault.total_managed_asset_amount > 0

    def accrue_management_fee(self, vault: VaultGlobal, now: int) -> int:
        """Prorate the annual rate over the elapsed time and carve it out of AUM.

        The fee joins ``pending_fees`` until :meth:`settle` pays it out.
        """
        elapsed = now - vault.last_management_fee_collection
        fee = mul_div(
            vault.total_managed_asset_amount,
            self.management_fee_bps * elapsed,
            BPS * SECONDS_PER_YEAR,
        )
        fee = min(fee, vault.total_managed_asset_amount)
        vault.total_managed_asset_amount -= fee
        vault.total_management_fees += fee
        vault.pending_fees += fee
        vault.last_management_fee_collection = now
        return fee

    @staticmethod
    def settle(vault: VaultGlobal, liquid_balance: int) -> int:
        """Amount owed to the treasury that the liquid balance can cover now."""
        owed = vault.pending_fees
        if owed == 0 or liquid_balance < owed:
            return 0
        vault.pending_fees = 0
        return owed
