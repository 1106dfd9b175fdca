"""Protocol façade — lending ledger and share vault over one owned state."""
from __future__ import annotations

import copy
import functools
import logging
from collections.abc import Callable
from typing import Any, Final, TypeVar

from ..config import AppConfig, MarketConfig
from ..errors import (
    AlreadySupported,
    CapacityExceeded,
    ConversionFailed,
    InsufficientCollateral,
    InsufficientLiquidity,
    InvalidAmount,
    InvalidState,
    LedgerError,
    NotSupported,
    TooEarly,
    TransferFailed,
    Unauthorized,
    UnsupportedAsset,
)
from ..fixed_point import checked_add, checked_sub
from ..interfaces.clock import Clock, SystemClock
from ..interfaces.custodian import Custodian
from ..interfaces.event_sink import EventSink
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.staking import StakingService
from ..interfaces.token import FungibleToken
from ..models import (
    AccountView,
    CollateralKind,
    DebtView,
    LedgerState,
    PositionView,
    TokenState,
    UserPosition,
    VaultMetrics,
)
from ..notifications import LoggingEventSink
from .borrow_index import BorrowIndexLedger
from .debt_ledger import UserDebtLedger
from .fees import FeeEngine
from .guard import ReentrancyGuard
from .health import HealthFactorEngine
from .interest_rate import InterestRateModel, RateParams
from .rebalance import RebalanceController
from .share_vault import ShareVault, YieldDistribution

logger = logging.getLogger(__name__)

MAX_SUPPORTED_ASSETS: Final[int] = 16

F = TypeVar("F", bound=Callable[..., Any])


def require_transfer(ok: bool, what: str) -> None:
    """Map a ``False`` collaborator result to TransferFailed."""
    if not ok:
        raise TransferFailed(f"{what} failed")


def _transaction(paused_ok: bool = False) -> Callable[[F], F]:
    """Run a mutating operation atomically under the reentrancy guard.

    The state is deep-copied on entry and restored if the body does not
    complete. Collaborator effects the body already caused are reversed
    newest first through the compensations registered alongside them.
    Notifications are published only after the body completes.
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(self: YieldLedger, *args: Any, **kwargs: Any) -> Any:
            name = fn.__name__
            with self._guard.hold(name):
                if self._state.paused and not paused_ok:
                    raise InvalidState(f"{name} is unavailable while paused")
                snapshot = copy.deepcopy(self._state)
                self._pending_events = []
                self._compensations = []
                committed = False
                try:
                    result = fn(self, *args, **kwargs)
                    committed = True
                except Exception as e:
                    logger.warning("%s rolled back: %s", name, e)
                    raise
                finally:
                    if not committed:
                        self._state = snapshot
                        self._pending_events = []
                        self._unwind()
                events, self._pending_events = self._pending_events, []
                self._compensations = []
            for event, payload in events:
                self._events.emit(event, payload)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


class YieldLedger:
    """Accounting engine for one protocol instance.

    Every mutating operation follows the same order: update global indices,
    accrue the caller's pending interest or yield, apply the change, then
    re-derive health factor or share price.
    """

    def __init__(
        self,
        config: AppConfig,
        oracle: PriceOracle,
        custodian: Custodian,
        tokens: dict[str, FungibleToken],
        staking: StakingService | None = None,
        clock: Clock | None = None,
        events: EventSink | None = None,
    ) -> None:
        self.owner = config.ledger.owner
        self.address = config.ledger.address
        self.vault_address = config.ledger.vault_address
        self.treasury = config.ledger.treasury

        self.base_asset = config.assets.base
        self.lst_asset = config.assets.lst
        self.ledger_asset = config.assets.ledger

        self._tokens: dict[str, FungibleToken] = dict(tokens)
        self._custodian = custodian
        self._staking = staking
        self._clock: Clock = clock or SystemClock()
        self._events: EventSink = events or LoggingEventSink()

        self._guard = ReentrancyGuard()
        self._pending_events: list[tuple[str, dict[str, Any]]] = []
        self._compensations: list[tuple[str, Callable[[], object]]] = []

        self.rate_model = InterestRateModel()
        self.index_ledger = BorrowIndexLedger(self.rate_model)
        self.debt_ledger = UserDebtLedger(self.index_ledger)
        self.health = HealthFactorEngine(
            oracle, config.collateral, self.base_asset, self.lst_asset
        )
        self.fees = FeeEngine(
            config.vault.performance_fee_bps,
            config.vault.management_fee_bps,
            config.vault.management_fee_period_seconds,
        )
        self.vault = ShareVault(self.fees)
        self.rebalancer = RebalanceController(
            config.vault.rebalance_threshold_bps, config.vault.auto_rebalance
        )
        self.yield_period = config.vault.yield_period_seconds

        now = self._clock.now()
        self._state = LedgerState()
        self._state.vault.last_management_fee_collection = now
        for asset in config.assets.alt:
            self._register_supported_asset(asset)
        for token, market in config.markets.items():
            self._register_borrowable_token(token, market, now)

        logger.info(
            "Ledger initialised: %d borrowable tokens, %d alt assets",
            len(self._state.tokens), len(self._state.supported_assets),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        """Live state. Mutate only through ledger operations."""
        return self._state

    def _emit(self, event: str, **payload: Any) -> None:
        self._pending_events.append((event, payload))

    def _only_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{caller} is not the ledger owner")

    def _token(self, symbol: str) -> FungibleToken:
        try:
            return self._tokens[symbol]
        except KeyError:
            raise UnsupportedAsset(f"No token contract for {symbol}") from None

    def _on_failure(self, description: str, undo: Callable[[], object]) -> None:
        """Register how to reverse a collaborator effect if the operation fails."""
        self._compensations.append((description, undo))

    def _unwind(self) -> None:
        compensations, self._compensations = self._compensations, []
        for description, undo in reversed(compensations):
            try:
                undo()
            except Exception:
                logger.exception("Could not reverse %s", description)
            else:
                logger.info("Reversed %s", description)

    def _pull(self, symbol: str, owner: str, recipient: str, amount: int) -> None:
        token = self._token(symbol)
        ok = token.transfer_from(recipient, owner, recipient, amount)
        require_transfer(ok, f"transfer_from {amount} {symbol} from {owner}")

        def refund() -> None:
            require_transfer(
                token.transfer(recipient, owner, amount),
                f"refund {amount} {symbol} to {owner}",
            )

        self._on_failure(f"pull of {amount} {symbol} from {owner}", refund)

    def _push(self, symbol: str, sender: str, recipient: str, amount: int) -> None:
        # Outgoing transfers cannot be reversed, so callers push last.
        ok = self._token(symbol).transfer(sender, recipient, amount)
        require_transfer(ok, f"transfer {amount} {symbol} to {recipient}")

    def _pay_treasury(self, amount: int) -> None:
        if amount:
            self._push(self.ledger_asset, self.vault_address, self.treasury, amount)

    def _convert(self, from_asset: str, to_asset: str, amount: int) -> int:
        amount_out = self._custodian_convert(from_asset, to_asset, amount)
        self._on_failure(
            f"conversion of {amount} {from_asset} -> {to_asset}",
            lambda: self._custodian_convert(to_asset, from_asset, amount_out),
        )
        return amount_out

    def _custodian_convert(self, from_asset: str, to_asset: str, amount: int) -> int:
        try:
            amount_out = self._custodian.convert(from_asset, to_asset, amount)
        except LedgerError:
            raise
        except Exception as e:
            raise ConversionFailed(
                f"Custodian failed converting {amount} {from_asset} -> {to_asset}"
            ) from e
        if amount > 0 and amount_out <= 0:
            raise ConversionFailed(
                f"Custodian returned {amount_out} for {amount} {from_asset} -> {to_asset}"
            )
        return amount_out

    def _stake_with(self, staking: StakingService, amount: int) -> int:
        btc = self._token(self.base_asset)
        ok = btc.approve(self.address, staking.address, amount)
        require_transfer(ok, f"approve {amount} {self.base_asset} for staking")
        minted = staking.stake(amount)
        if minted <= 0:
            btc.approve(self.address, staking.address, 0)
            raise ConversionFailed(f"Staking {amount} {self.base_asset} minted nothing")
        return minted

    def _unstake_with(self, staking: StakingService, lst_amount: int) -> int:
        amount = staking.unstake(lst_amount)
        if amount <= 0:
            raise ConversionFailed(f"Unstaking {lst_amount} {self.lst_asset} returned nothing")
        return amount

    def _stake(self, staking: StakingService, amount: int) -> int:
        minted = self._stake_with(staking, amount)
        self._on_failure(
            f"stake of {amount} {self.base_asset}",
            lambda: self._unstake_with(staking, minted),
        )
        return minted

    def _unstake(self, staking: StakingService, lst_amount: int) -> int:
        amount = self._unstake_with(staking, lst_amount)
        self._on_failure(
            f"unstake of {lst_amount} {self.lst_asset}",
            lambda: self._stake_with(staking, amount),
        )
        return amount

    def _require_borrowable(self, token: str) -> TokenState:
        token_state = self._state.tokens.get(token)
        if token_state is None:
            raise UnsupportedAsset(f"{token} is not a borrowable token")
        return token_state

    def _require_vault_asset(self, asset: str) -> None:
        if asset != self.base_asset and asset not in self._state.supported_assets:
            raise UnsupportedAsset(f"{asset} is not accepted by the vault")

    @staticmethod
    def _require_positive(amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Amount must be positive, got {amount}")

    def _collateral_symbol(self, kind: str) -> str:
        if kind == CollateralKind.BTC:
            return self.base_asset
        if kind == CollateralKind.LST_BTC:
            return self.lst_asset
        raise UnsupportedAsset(f"Unknown collateral kind {kind!r}")

    def _require_staking(self) -> StakingService:
        if self._staking is None:
            raise InvalidState("No staking service configured")
        return self._staking

    def _register_supported_asset(self, asset: str) -> None:
        if asset in (self.base_asset, self.lst_asset, self.ledger_asset):
            raise UnsupportedAsset(f"{asset} is a core asset")
        if asset in self._state.supported_assets:
            raise AlreadySupported(f"{asset} is already supported")
        if len(self._state.supported_assets) >= MAX_SUPPORTED_ASSETS:
            raise CapacityExceeded(f"At most {MAX_SUPPORTED_ASSETS} alt assets")
        self._token(asset)
        self._state.supported_assets.append(asset)

    def _register_borrowable_token(self, token: str, market: MarketConfig, now: int) -> None:
        if token in self._state.tokens:
            raise AlreadySupported(f"{token} is already borrowable")
        if len(self._state.tokens) >= MAX_SUPPORTED_ASSETS:
            raise CapacityExceeded(f"At most {MAX_SUPPORTED_ASSETS} borrowable tokens")
        if market.max_rate_bps < market.base_rate_bps:
            raise InvalidAmount(f"{token} max rate is below its base rate")
        self._token(token)
        self.rate_model.register(token, RateParams.from_market(market))
        self._state.tokens[token] = TokenState(last_index_update_time=now)

    def _debt_of(self, state: LedgerState, user: str, token: str) -> int:
        return self.debt_ledger.outstanding_debt(state, user, token)

    def _accrue(self, user: str, now: int) -> None:
        self.debt_ledger.accrue_interest(self._state, user, now)

    def _refresh_health(self, user: str) -> int:
        return self.health.refresh(self._state, user, self._debt_of)

    def _require_within_limit(self, user: str, extra_debt_usd: int = 0) -> None:
        position = self._state.position(user)
        debt_usd = self.health.total_debt_value_usd(self._state, user, self._debt_of)
        limit = self.health.max_borrowable_usd(position)
        if debt_usd + extra_debt_usd > limit:
            raise InsufficientCollateral(
                f"Debt {debt_usd + extra_debt_usd} would exceed max borrowable {limit}"
            )

    def _vault_balance(self) -> int:
        return self._token(self.ledger_asset).balance_of(self.vault_address)

    def _accrue_management_fee(self, now: int) -> tuple[int, int]:
        """Accrue the fee; returns it with the payout the caller must transfer."""
        vault = self._state.vault
        fee = self.fees.accrue_management_fee(vault, now)
        payout = self.fees.settle(vault, self._vault_balance())
        self._emit("ManagementFeeCollected", fee=fee, paid=payout, owed=vault.pending_fees)
        return fee, payout

    # ------------------------------------------------------------------
    # Lending: liquidity and collateral
    # ------------------------------------------------------------------

    @_transaction()
    def add_liquidity(self, provider: str, token: str, amount: int) -> None:
        self._require_positive(amount)
        token_state = self._require_borrowable(token)
        self.index_ledger.update_index(self._state, token, self._clock.now())
        token_state.reserves = checked_add(token_state.reserves, amount)
        self._pull(token, provider, self.address, amount)
        self._emit("LiquidityAdded", provider=provider, token=token, amount=amount)

    @_transaction()
    def deposit_collateral(self, user: str, kind: str, amount: int) -> int:
        symbol = self._collateral_symbol(kind)
        self._require_positive(amount)
        self._accrue(user, self._clock.now())
        position = self._state.position(user)
        position.set_collateral(kind, checked_add(position.collateral(kind), amount))
        health = self._refresh_health(user)
        self._pull(symbol, user, self.address, amount)
        self._emit("CollateralDeposited", user=user, kind=kind, amount=amount)
        return health

    @_transaction()
    def withdraw_collateral(self, user: str, kind: str, amount: int) -> int:
        symbol = self._collateral_symbol(kind)
        self._require_positive(amount)
        position = self._state.position(user)
        if amount > position.collateral(kind):
            raise InsufficientCollateral(
                f"{user} has {position.collateral(kind)} {kind} collateral, requested {amount}"
            )
        self._accrue(user, self._clock.now())
        position.set_collateral(kind, checked_sub(position.collateral(kind), amount))
        self._require_within_limit(user)
        health = self._refresh_health(user)
        self._push(symbol, self.address, user, amount)
        self._emit("CollateralWithdrawn", user=user, kind=kind, amount=amount)
        return health

    @_transaction()
    def stake_collateral(self, user: str, amount: int) -> int:
        """Convert BTC collateral into lstBTC collateral through the staking service."""
        staking = self._require_staking()
        self._require_positive(amount)
        position = self._state.position(user)
        if amount > position.btc_collateral:
            raise InsufficientCollateral(
                f"{user} has {position.btc_collateral} BTC collateral, requested {amount}"
            )
        self._accrue(user, self._clock.now())
        position.btc_collateral = checked_sub(position.btc_collateral, amount)

        minted = self._stake(staking, amount)
        position.lst_btc_collateral = checked_add(position.lst_btc_collateral, minted)
        self._require_within_limit(user)
        self._refresh_health(user)
        self._emit("CollateralStaked", user=user, amount=amount, minted=minted)
        return minted

    @_transaction()
    def unstake_collateral(self, user: str, lst_amount: int) -> int:
        staking = self._require_staking()
        self._require_positive(lst_amount)
        position = self._state.position(user)
        if lst_amount > position.lst_btc_collateral:
            raise InsufficientCollateral(
                f"{user} has {position.lst_btc_collateral} lstBTC collateral, "
                f"requested {lst_amount}"
            )
        self._accrue(user, self._clock.now())
        position.lst_btc_collateral = checked_sub(position.lst_btc_collateral, lst_amount)

        amount = self._unstake(staking, lst_amount)
        position.btc_collateral = checked_add(position.btc_collateral, amount)
        self._require_within_limit(user)
        self._refresh_health(user)
        self._emit("CollateralUnstaked", user=user, amount=lst_amount, received=amount)
        return amount

    # ------------------------------------------------------------------
    # Lending: borrow / repay
    # ------------------------------------------------------------------

    @_transaction()
    def borrow(self, user: str, token: str, amount: int) -> int:
        """Borrow ``amount`` of ``token``; returns the new health factor."""
        token_state = self._require_borrowable(token)
        self._require_positive(amount)
        if token_state.reserves < amount:
            raise InsufficientLiquidity(
                f"{token} reserves {token_state.reserves} below requested {amount}"
            )

        now = self._clock.now()
        self.index_ledger.update_index(self._state, token, now)
        self._accrue(user, now)
        self._require_within_limit(user, self.health.value_usd(token, amount))

        self.debt_ledger.record_borrow(self._state, user, token, amount)
        token_state.reserves = checked_sub(token_state.reserves, amount)
        health = self._refresh_health(user)

        self._push(token, self.address, user, amount)
        self._emit("Borrowed", user=user, token=token, amount=amount, health_factor=health)
        return health

    @_transaction()
    def repay(self, user: str, token: str, amount: int) -> int:
        """Repay interest first, then principal; returns the new health factor."""
        self._require_positive(amount)
        token_state = self._require_borrowable(token)

        now = self._clock.now()
        self.index_ledger.update_index(self._state, token, now)
        self._accrue(user, now)

        principal_paid = self.debt_ledger.record_repay(self._state, user, token, amount)
        token_state.reserves = checked_add(token_state.reserves, amount)
        health = self._refresh_health(user)

        self._pull(token, user, self.address, amount)
        self._emit(
            "Repaid", user=user, token=token, amount=amount,
            principal=principal_paid, health_factor=health,
        )
        return health

    # ------------------------------------------------------------------
    # Vault
    # ------------------------------------------------------------------

    @_transaction()
    def deposit(self, user: str, asset: str, amount: int) -> int:
        """Deposit base or alt asset; returns the shares minted."""
        self._require_vault_asset(asset)
        self._require_positive(amount)

        self._pull(asset, user, self.vault_address, amount)
        ledger_amount = self._convert(asset, self.ledger_asset, amount)

        shares = self.vault.mint(self._state, user, ledger_amount)
        self.vault.track_deposit(
            self._state.account(user), asset, self.base_asset, amount, ledger_amount
        )
        if self.rebalancer.auto_rebalance:
            self.rebalancer.check_and_rebalance(self._state.vault, self._vault_balance())

        self._emit("Deposited", user=user, asset=asset, amount=amount, shares=shares)
        return shares

    @_transaction()
    def request_withdrawal(self, user: str, shares: int, output_asset: str) -> int:
        """Burn ``shares`` and pay out in ``output_asset``; returns the amount paid."""
        self._require_vault_asset(output_asset)
        withdrawal = self.vault.burn(self._state, user, shares)
        if withdrawal.asset_amount == 0:
            raise InvalidAmount(f"{shares} shares are worth nothing")

        amount_out = self._convert(self.ledger_asset, output_asset, withdrawal.asset_amount)
        self._push(output_asset, self.vault_address, user, amount_out)
        self._emit(
            "WithdrawalProcessed", user=user, shares=shares,
            asset=output_asset, amount=amount_out,
        )
        return amount_out

    @_transaction()
    def distribute_yield(self) -> YieldDistribution:
        vault = self._state.vault
        now = self._clock.now()
        if now - vault.last_yield_distribution < self.yield_period:
            raise TooEarly(
                f"Next distribution at {vault.last_yield_distribution + self.yield_period}"
            )

        fee_payout = 0
        if self.fees.management_fee_due(vault, now):
            _, fee_payout = self._accrue_management_fee(now)

        # The fee payout is still in custody until the single treasury transfer.
        distribution = self.vault.apply_yield(self._state, self._vault_balance() - fee_payout)
        vault.last_yield_distribution = now
        self._pay_treasury(fee_payout + distribution.performance_fee)
        self._emit(
            "YieldDistributed",
            yield_generated=distribution.yield_generated,
            performance_fee=distribution.performance_fee,
            net_yield=distribution.net_yield,
        )
        return distribution

    @_transaction()
    def claim_yield(self, user: str) -> int:
        amount = self.vault.take_claim(self._state, user)
        self._push(self.ledger_asset, self.vault_address, user, amount)
        self._emit("YieldClaimed", user=user, amount=amount)
        return amount

    @_transaction()
    def collect_management_fee(self) -> int:
        vault = self._state.vault
        now = self._clock.now()
        due_at = vault.last_management_fee_collection + self.fees.management_fee_period
        if now < due_at:
            raise TooEarly(f"Management fee not due until {due_at}")
        if vault.total_managed_asset_amount == 0:
            vault.last_management_fee_collection = now
            return 0
        fee, payout = self._accrue_management_fee(now)
        self._pay_treasury(payout)
        return fee

    @_transaction(paused_ok=True)
    def manual_rebalance(self, caller: str) -> bool:
        self._only_owner(caller)
        rebalanced = self.rebalancer.check_and_rebalance(
            self._state.vault, self._vault_balance()
        )
        if rebalanced:
            self._emit(
                "Rebalanced", managed=self._state.vault.total_managed_asset_amount
            )
        return rebalanced

    @_transaction(paused_ok=True)
    def emergency_withdraw(self, user: str) -> int:
        """While paused, return all of ``user``'s ledger asset without conversion."""
        if not self._state.paused:
            raise InvalidState("Emergency withdrawal is only available while paused")
        withdrawal = self.vault.burn_all_unrealized(self._state, user)
        if withdrawal.asset_amount:
            self._push(self.ledger_asset, self.vault_address, user, withdrawal.asset_amount)
        self._emit(
            "EmergencyWithdrawal", user=user, shares=withdrawal.shares,
            amount=withdrawal.asset_amount,
        )
        return withdrawal.asset_amount

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @_transaction(paused_ok=True)
    def add_supported_asset(self, caller: str, asset: str) -> None:
        self._only_owner(caller)
        self._register_supported_asset(asset)
        self._emit("AssetSupported", asset=asset)

    @_transaction(paused_ok=True)
    def remove_supported_asset(self, caller: str, asset: str) -> None:
        self._only_owner(caller)
        if asset not in self._state.supported_assets:
            raise NotSupported(f"{asset} is not supported")
        self._state.supported_assets.remove(asset)
        self._emit("AssetRemoved", asset=asset)

    @_transaction(paused_ok=True)
    def add_borrowable_token(self, caller: str, token: str, market: MarketConfig) -> None:
        self._only_owner(caller)
        self._register_borrowable_token(token, market, self._clock.now())
        self._emit("BorrowableTokenAdded", token=token)

    @_transaction(paused_ok=True)
    def set_token(self, caller: str, symbol: str, token: FungibleToken) -> None:
        self._only_owner(caller)
        self._tokens[symbol] = token
        self._emit("TokenUpdated", symbol=symbol)

    @_transaction(paused_ok=True)
    def set_price_oracle(self, caller: str, oracle: PriceOracle) -> None:
        self._only_owner(caller)
        self.health.oracle = oracle
        self._emit("PriceOracleUpdated")

    @_transaction(paused_ok=True)
    def set_custodian(self, caller: str, custodian: Custodian) -> None:
        self._only_owner(caller)
        self._custodian = custodian
        self._emit("CustodianUpdated")

    @_transaction(paused_ok=True)
    def set_staking_service(self, caller: str, staking: StakingService) -> None:
        self._only_owner(caller)
        self._staking = staking
        self._emit("StakingServiceUpdated", address=staking.address)

    @_transaction(paused_ok=True)
    def set_treasury(self, caller: str, treasury: str) -> None:
        self._only_owner(caller)
        if not treasury:
            raise InvalidAmount("Treasury address must be non-empty")
        self.treasury = treasury
        self._emit("TreasuryUpdated", treasury=treasury)

    @_transaction(paused_ok=True)
    def pause(self, caller: str) -> None:
        self._only_owner(caller)
        if self._state.paused:
            raise InvalidState("Already paused")
        self._state.paused = True
        self._emit("Paused")

    @_transaction(paused_ok=True)
    def unpause(self, caller: str) -> None:
        self._only_owner(caller)
        if not self._state.paused:
            raise InvalidState("Not paused")
        self._state.paused = False
        self._emit("Unpaused")

    @_transaction(paused_ok=True)
    def update_rebalance_threshold(self, caller: str, threshold_bps: int) -> None:
        self._only_owner(caller)
        self.rebalancer.update_threshold(threshold_bps)
        self._emit("RebalanceThresholdUpdated", threshold_bps=threshold_bps)

    @_transaction(paused_ok=True)
    def set_auto_rebalance(self, caller: str, enabled: bool) -> None:
        self._only_owner(caller)
        self.rebalancer.auto_rebalance = enabled
        self._emit("AutoRebalanceUpdated", enabled=enabled)

    @_transaction(paused_ok=True)
    def update_fee_rates(
        self, caller: str, performance_fee_bps: int, management_fee_bps: int
    ) -> None:
        self._only_owner(caller)
        self.fees.update_rates(performance_fee_bps, management_fee_bps)
        self._emit(
            "FeeRatesUpdated",
            performance_fee_bps=performance_fee_bps,
            management_fee_bps=management_fee_bps,
        )

    # ------------------------------------------------------------------
    # Read-only queries (no guard, no index writes)
    # ------------------------------------------------------------------

    def user_position(self, user: str) -> PositionView:
        """Position with debts projected to now; health factor as last recomputed."""
        position = self._state.positions.get(user) or UserPosition()
        now = self._clock.now()

        debts: list[DebtView] = []
        debt_usd = 0
        for token in position.borrowed_tokens:
            outstanding = self.debt_ledger.projected_debt(self._state, user, token, now)
            debt = position.debts[token]
            debts.append(DebtView(token, debt.principal, debt.accrued_interest, outstanding))
            debt_usd += self.health.value_usd(token, outstanding)

        return PositionView(
            user=user,
            btc_collateral=position.btc_collateral,
            lst_btc_collateral=position.lst_btc_collateral,
            collateral_value_usd=self.health.collateral_value_usd(position),
            debt_value_usd=debt_usd,
            max_borrowable_usd=self.health.max_borrowable_usd(position),
            health_factor=(
                position.health_factor
                if user in self._state.positions
                else HealthFactorEngine.MAX_HEALTH_FACTOR
            ),
            debts=tuple(debts),
        )

    def health_factor(self, user: str) -> int:
        position = self._state.positions.get(user)
        if position is None:
            return HealthFactorEngine.MAX_HEALTH_FACTOR
        return position.health_factor

    def current_debt(self, user: str, token: str) -> int:
        """Outstanding debt at the last stored index."""
        return self.debt_ledger.outstanding_debt(self._state, user, token)

    def pending_yield(self, user: str) -> int:
        account = self._state.accounts.get(user)
        if account is None:
            return 0
        return account.yield_earned + self.vault.pending_yield(self._state.vault, account)

    def vault_account(self, user: str) -> AccountView:
        account = self._state.accounts.get(user)
        if account is None:
            return AccountView(user, 0, 0, 0, (), 0, 0)
        return AccountView(
            user=user,
            share_balance=account.share_balance,
            deposited_base_asset=account.deposited_base_asset,
            deposited_alt_asset_value=account.deposited_alt_asset_value,
            alt_deposits=tuple(sorted(account.alt_deposits.items())),
            yield_earned=account.yield_earned,
            pending_yield=self.vault.pending_yield(self._state.vault, account),
        )

    def vault_metrics(self) -> VaultMetrics:
        vault = self._state.vault
        return VaultMetrics(
            total_shares=vault.total_shares,
            total_managed_asset_amount=vault.total_managed_asset_amount,
            share_price=self.vault.share_price(vault),
            accumulated_yield_per_share=vault.accumulated_yield_per_share,
            total_performance_fees=vault.total_performance_fees,
            total_management_fees=vault.total_management_fees,
            pending_fees=vault.pending_fees,
            last_yield_distribution=vault.last_yield_distribution,
            last_management_fee_collection=vault.last_management_fee_collection,
            paused=self._state.paused,
        )

    def borrow_rate(self, token: str) -> int:
        return self.rate_model.borrow_rate(token, self._require_borrowable(token))

    def borrow_index(self, token: str) -> int:
        return self._require_borrowable(token).borrow_index

    def utilization(self, token: str) -> int:
        return self.rate_model.utilization(self._require_borrowable(token))

    def supported_assets(self) -> tuple[str, ...]:
        return (self.base_asset, *self._state.supported_assets)

    def borrowable_tokens(self) -> tuple[str, ...]:
        return tuple(self._state.tokens)

    def share_price(self) -> int:
        return self.vault.share_price(self._state.vault)
