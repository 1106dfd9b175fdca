"""Ledger state entities and frozen query snapshots.

State entities are mutable and only ever touched by ledger operations;
everything handed back to callers is a frozen snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from .fixed_point import SCALE


class CollateralKind:
    """Collateral slots tracked on a :class:`UserPosition`."""

    BTC = "btc"
    LST_BTC = "lst_btc"

    ALL = (BTC, LST_BTC)


# ---------------------------------------------------------------------------
# Lending state
# ---------------------------------------------------------------------------


@dataclass
class TokenState:
    """Per borrowable token. ``borrow_index`` never decreases."""

    reserves: int = 0
    total_borrows_principal: int = 0
    borrow_index: int = SCALE
    last_index_update_time: int = 0


@dataclass
class TokenDebt:
    """A user's debt in one token, derived from index snapshots."""

    principal: int = 0
    accrued_interest: int = 0
    borrow_index_snapshot: int = 0


@dataclass
class UserPosition:
    btc_collateral: int = 0
    lst_btc_collateral: int = 0
    debts: dict[str, TokenDebt] = field(default_factory=dict)
    last_update_time: int = 0
    health_factor: int = 0
    borrowed_tokens: list[str] = field(default_factory=list)
    is_borrowed: dict[str, bool] = field(default_factory=dict)

    def collateral(self, kind: str) -> int:
        if kind == CollateralKind.BTC:
            return self.btc_collateral
        return self.lst_btc_collateral

    def set_collateral(self, kind: str, amount: int) -> None:
        if kind == CollateralKind.BTC:
            self.btc_collateral = amount
        else:
            self.lst_btc_collateral = amount


# ---------------------------------------------------------------------------
# Vault state
# ---------------------------------------------------------------------------


@dataclass
class VaultAccount:
    share_balance: int = 0
    deposited_base_asset: int = 0
    deposited_alt_asset_value: int = 0
    alt_deposits: dict[str, int] = field(default_factory=dict)
    yield_debt: int = 0
    yield_earned: int = 0


@dataclass
class VaultGlobal:
    """``accumulated_yield_per_share`` never decreases."""

    total_shares: int = 0
    total_managed_asset_amount: int = 0
    accumulated_yield_per_share: int = 0
    total_performance_fees: int = 0
    total_management_fees: int = 0
    pending_fees: int = 0
    last_management_fee_collection: int = 0
    last_yield_distribution: int = 0


@dataclass
class LedgerState:
    """The whole mutable state of one protocol instance."""

    tokens: dict[str, TokenState] = field(default_factory=dict)
    positions: dict[str, UserPosition] = field(default_factory=dict)
    accounts: dict[str, VaultAccount] = field(default_factory=dict)
    vault: VaultGlobal = field(default_factory=VaultGlobal)
    supported_assets: list[str] = field(default_factory=list)
    paused: bool = False

    def position(self, user: str) -> UserPosition:
        """Get or lazily create a user's lending position."""
        if user not in self.positions:
            self.positions[user] = UserPosition()
        return self.positions[user]

    def account(self, user: str) -> VaultAccount:
        """Get or lazily create a user's vault account."""
        if user not in self.accounts:
            self.accounts[user] = VaultAccount()
        return self.accounts[user]


# ---------------------------------------------------------------------------
# Query snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DebtView:
    token: str
    principal: int
    accrued_interest: int
    outstanding: int


@dataclass(frozen=True)
class PositionView:
    """Read-only view of a lending position, projected to query time."""

    user: str
    btc_collateral: int
    lst_btc_collateral: int
    collateral_value_usd: int
    debt_value_usd: int
    max_borrowable_usd: int
    health_factor: int
    debts: tuple[DebtView, ...] = ()


@dataclass(frozen=True)
class AccountView:
    user: str
    share_balance: int
    deposited_base_asset: int
    deposited_alt_asset_value: int
    alt_deposits: tuple[tuple[str, int], ...]
    yield_earned: int
    pending_yield: int


@dataclass(frozen=True)
class VaultMetrics:
    total_shares: int
    total_managed_asset_amount: int
    share_price: int
    accumulated_yield_per_share: int
    total_performance_fees: int
    total_management_fees: int
    pending_fees: int
    last_yield_distribution: int
    last_management_fee_collection: int
    paused: bool
