"""Unit tests for health factor and borrow limits."""
from __future__ import annotations

import pytest

from vault_ledger.config import CollateralConfig
from vault_ledger.errors import PriceUnavailable
from vault_ledger.fixed_point import SCALE
from vault_ledger.models import LedgerState, TokenDebt, UserPosition
from vault_ledger.oracles import StaticPriceOracle
from vault_ledger.services import HealthFactorEngine

E = SCALE


@pytest.fixture()
def oracle() -> StaticPriceOracle:
    return StaticPriceOracle({"BTC": 60_000 * E, "lstBTC": 59_000 * E, "USDC": E})


@pytest.fixture()
def engine(oracle: StaticPriceOracle) -> HealthFactorEngine:
    return HealthFactorEngine(oracle, CollateralConfig(150, 120), "BTC", "lstBTC")


def _principal_only(state: LedgerState, user: str, token: str) -> int:
    return state.positions[user].debts[token].principal


class TestValuation:
    def test_value_usd(self, engine: HealthFactorEngine) -> None:
        assert engine.value_usd("BTC", 2 * E) == 120_000 * E

    def test_zero_amount_needs_no_price(self, engine: HealthFactorEngine) -> None:
        assert engine.value_usd("UNKNOWN", 0) == 0

    def test_missing_price(self, engine: HealthFactorEngine) -> None:
        with pytest.raises(PriceUnavailable):
            engine.value_usd("DOGE", E)

    def test_max_borrowable_uses_per_kind_ratio(self, engine: HealthFactorEngine) -> None:
        position = UserPosition(btc_collateral=E, lst_btc_collateral=E)
        assert engine.max_borrowable_usd(position) == (
            60_000 * E * 100 // 150 + 59_000 * E * 100 // 120
        )

    def test_borrow_limit_boundary(self) -> None:
        engine = HealthFactorEngine(
            StaticPriceOracle({"BTC": E}), CollateralConfig(150, 120), "BTC", "lstBTC"
        )
        limit = engine.max_borrowable_usd(UserPosition(btc_collateral=10 * E))
        assert limit == 6_666_666_666_666_666_666
        assert 6 * E <= limit
        assert 6_668 * E // 1000 > limit


class TestCompute:
    def test_no_debt_is_max(self, engine: HealthFactorEngine) -> None:
        assert engine.compute(100 * E, 0) == HealthFactorEngine.MAX_HEALTH_FACTOR

    def test_scaled_by_hundred(self, engine: HealthFactorEngine) -> None:
        assert engine.compute(150 * E, 100 * E) == 150 * E

    def test_decreases_as_debt_grows(self, engine: HealthFactorEngine) -> None:
        factors = [engine.compute(200 * E, debt * E) for debt in (10, 50, 100, 150)]
        assert factors == sorted(factors, reverse=True)
        assert len(set(factors)) == len(factors)


class TestRefresh:
    def test_caches_on_position(self, engine: HealthFactorEngine) -> None:
        state = LedgerState()
        position = state.position("alice")
        position.btc_collateral = E
        position.borrowed_tokens.append("USDC")
        position.debts["USDC"] = TokenDebt(principal=30_000 * E, borrow_index_snapshot=E)

        health = engine.refresh(state, "alice", _principal_only)
        assert health == 200 * E
        assert position.health_factor == 200 * E

    def test_debt_value_for_unknown_user_creates_nothing(
        self, engine: HealthFactorEngine
    ) -> None:
        state = LedgerState()
        assert engine.total_debt_value_usd(state, "ghost", _principal_only) == 0
        assert "ghost" not in state.positions
