"""Pooled ledger-asset share accounting and yield distribution.

Pure bookkeeping over :class:`~vault_ledger.models.LedgerState`; token
movements and conversions are done by the caller around these steps.

Yield follows the accumulator pattern: ``accumulated_yield_per_share``
grows by ``net_yield * SCALE / total_shares`` on each distribution and a
holder's pending yield is ``shares * acc / SCALE - yield_debt``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import InsufficientShares, InvalidAmount
from ..fixed_point import SCALE, checked_add, mul_div
from ..models import LedgerState, VaultAccount, VaultGlobal
from .fees import FeeEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Withdrawal:
    shares: int
    asset_amount: int
    withdrawal_ratio: int


@dataclass(frozen=True)
class YieldDistribution:
    yield_generated: int
    performance_fee: int
    net_yield: int


class ShareVault:
    def __init__(self, fees: FeeEngine) -> None:
        self.fees = fees

    @staticmethod
    def preview_shares(vault: VaultGlobal, asset_amount: int) -> int:
        if vault.total_shares == 0:
            return asset_amount
        return mul_div(asset_amount, vault.total_shares, vault.total_managed_asset_amount)

    @staticmethod
    def preview_assets(vault: VaultGlobal, shares: int) -> int:
        if vault.total_shares == 0:
            return 0
        return mul_div(shares, vault.total_managed_asset_amount, vault.total_shares)

    @staticmethod
    def share_price(vault: VaultGlobal) -> int:
        if vault.total_shares == 0:
            return SCALE
        return mul_div(vault.total_managed_asset_amount, SCALE, vault.total_shares)

    @staticmethod
    def pending_yield(vault: VaultGlobal, account: VaultAccount) -> int:
        accrued = mul_div(account.share_balance, vault.accumulated_yield_per_share, SCALE)
        return max(accrued - account.yield_debt, 0)

    def realize_yield(self, state: LedgerState, user: str) -> int:
        account = state.account(user)
        pending = self.pending_yield(state.vault, account)
        account.yield_earned += pending
        account.yield_debt = mul_div(
            account.share_balance, state.vault.accumulated_yield_per_share, SCALE
        )
        return pending

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    def mint(self, state: LedgerState, user: str, ledger_amount: int) -> int:
        """Issue shares for ``ledger_amount`` of converted ledger asset."""
        vault = state.vault
        shares = self.preview_shares(vault, ledger_amount)
        if shares == 0:
            raise InvalidAmount(f"Deposit of {ledger_amount} would mint zero shares")

        account = state.account(user)
        account.share_balance = checked_add(account.share_balance, shares)
        account.yield_debt += mul_div(shares, vault.accumulated_yield_per_share, SCALE)
        vault.total_shares = checked_add(vault.total_shares, shares)
        vault.total_managed_asset_amount = checked_add(
            vault.total_managed_asset_amount, ledger_amount
        )
        return shares

    @staticmethod
    def track_deposit(
        account: VaultAccount, asset: str, base_asset: str, amount: int, ledger_value: int
    ) -> None:
        if asset == base_asset:
            account.deposited_base_asset += amount
        else:
            account.deposited_alt_asset_value += ledger_value
            account.alt_deposits[asset] = account.alt_deposits.get(asset, 0) + amount

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def burn(self, state: LedgerState, user: str, shares: int) -> Withdrawal:
        if shares <= 0:
            raise InvalidAmount("Shares to withdraw must be positive")
        account = state.account(user)
        if shares > account.share_balance:
            raise InsufficientShares(
                f"{user} holds {account.share_balance} shares, requested {shares}"
            )

        self.realize_yield(state, user)

        vault = state.vault
        asset_amount = self.preview_assets(vault, shares)
        account.share_balance -= shares
        vault.total_shares -= shares
        vault.total_managed_asset_amount -= min(asset_amount, vault.total_managed_asset_amount)

        # Denominator is the post-burn balance plus the burned shares.
        withdrawal_ratio = mul_div(shares, SCALE, account.share_balance + shares)
        self._reduce_tracking(account, withdrawal_ratio)
        account.yield_debt = mul_div(
            account.share_balance, vault.accumulated_yield_per_share, SCALE
        )
        return Withdrawal(shares, asset_amount, withdrawal_ratio)

    @staticmethod
    def _reduce_tracking(account: VaultAccount, ratio: int) -> None:
        account.deposited_base_asset -= mul_div(account.deposited_base_asset, ratio, SCALE)
        account.deposited_alt_asset_value -= mul_div(
            account.deposited_alt_asset_value, ratio, SCALE
        )
        for asset, amount in account.alt_deposits.items():
            account.alt_deposits[asset] = amount - mul_div(amount, ratio, SCALE)

    def burn_all_unrealized(self, state: LedgerState, user: str) -> Withdrawal:
        """Burn every share without realizing yield (emergency exit)."""
        account = state.account(user)
        shares = account.share_balance
        if shares == 0:
            raise InsufficientShares(f"{user} holds no shares")
        vault = state.vault
        asset_amount = self.preview_assets(vault, shares)
        account.share_balance = 0
        account.yield_debt = 0
        vault.total_shares -= shares
        vault.total_managed_asset_amount -= min(asset_amount, vault.total_managed_asset_amount)
        self._reduce_tracking(account, SCALE)
        return Withdrawal(shares, asset_amount, SCALE)

    # ------------------------------------------------------------------
    # Yield
    # ------------------------------------------------------------------

    def apply_yield(self, state: LedgerState, current_balance: int) -> YieldDistribution:
        """Credit growth of the custody balance over the tracked amount."""
        vault = state.vault
        # Owed fees sit in the custody balance but are not managed assets.
        current_balance = max(current_balance - vault.pending_fees, 0)
        if current_balance <= vault.total_managed_asset_amount:
            return YieldDistribution(0, 0, 0)

        yield_generated = current_balance - vault.total_managed_asset_amount
        performance_fee = self.fees.performance_fee(yield_generated)
        net_yield = yield_generated - performance_fee

        if vault.total_shares > 0:
            vault.accumulated_yield_per_share += mul_div(net_yield, SCALE, vault.total_shares)
        vault.total_managed_asset_amount = current_balance - performance_fee
        vault.total_performance_fees += performance_fee
        logger.debug(
            "Yield %d, fee %d, net %d over %d shares",
            yield_generated, performance_fee, net_yield, vault.total_shares,
        )
        return YieldDistribution(yield_generated, performance_fee, net_yield)

    def take_claim(self, state: LedgerState, user: str) -> int:
        self.realize_yield(state, user)
        account = state.account(user)
        amount = account.yield_earned
        if amount == 0:
            raise InvalidAmount(f"{user} has no yield to claim")
        account.yield_earned = 0
        return amount
