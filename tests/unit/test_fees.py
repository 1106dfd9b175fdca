"""Unit tests for performance and management fees."""
from __future__ import annotations

import pytest

from vault_ledger.errors import InvalidAmount
from vault_ledger.fixed_point import SCALE, SECONDS_PER_YEAR
from vault_ledger.models import VaultGlobal
from vault_ledger.services import FeeEngine

E = SCALE
DAY = 86400
PERIOD = 30 * DAY


@pytest.fixture()
def fees() -> FeeEngine:
    return FeeEngine(performance_fee_bps=1000, management_fee_bps=200, management_fee_period=PERIOD)


class TestPerformanceFee:
    def test_ten_percent(self, fees: FeeEngine) -> None:
        assert fees.performance_fee(15 * E) == 15 * E // 10

    def test_update_rates(self, fees: FeeEngine) -> None:
        fees.update_rates(2000, 100)
        assert fees.performance_fee(10 * E) == 2 * E
        assert fees.management_fee_bps == 100

    @pytest.mark.parametrize("bad", [-1, 10_001])
    def test_update_rates_out_of_range(self, fees: FeeEngine, bad: int) -> None:
        with pytest.raises(InvalidAmount):
            fees.update_rates(bad, 100)
        assert fees.performance_fee_bps == 1000


class TestManagementFee:
    def test_not_due_before_period(self, fees: FeeEngine) -> None:
        vault = VaultGlobal(total_managed_asset_amount=100 * E, last_management_fee_collection=0)
        assert not fees.management_fee_due(vault, PERIOD - 1)
        assert fees.management_fee_due(vault, PERIOD)

    def test_not_due_on_empty_vault(self, fees: FeeEngine) -> None:
        assert not fees.management_fee_due(VaultGlobal(), PERIOD * 10)

    def test_prorated_and_carved_from_aum(self, fees: FeeEngine) -> None:
        vault = VaultGlobal(total_managed_asset_amount=100 * E, last_management_fee_collection=0)
        fee = fees.accrue_management_fee(vault, PERIOD)

        assert fee == 100 * E * 200 * PERIOD // (10_000 * SECONDS_PER_YEAR)
        assert vault.total_managed_asset_amount == 100 * E - fee
        assert vault.total_management_fees == fee
        assert vault.pending_fees == fee
        assert vault.last_management_fee_collection == PERIOD

    def test_full_year_is_full_rate(self, fees: FeeEngine) -> None:
        vault = VaultGlobal(total_managed_asset_amount=100 * E)
        assert fees.accrue_management_fee(vault, SECONDS_PER_YEAR) == 2 * E


class TestSettle:
    def test_pays_when_liquid(self) -> None:
        vault = VaultGlobal(pending_fees=3 * E)
        assert FeeEngine.settle(vault, 10 * E) == 3 * E
        assert vault.pending_fees == 0

    def test_defers_when_illiquid(self) -> None:
        vault = VaultGlobal(pending_fees=3 * E)
        assert FeeEngine.settle(vault, 2 * E) == 0
        assert vault.pending_fees == 3 * E

    def test_nothing_owed(self) -> None:
        assert FeeEngine.settle(VaultGlobal(), 10 * E) == 0
