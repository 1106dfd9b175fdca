"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from vault_ledger.collaborators import FixedRateCustodian, InMemoryToken, RatioStakingService
from vault_ledger.config import (
    AppConfig,
    AssetsConfig,
    CollateralConfig,
    LedgerConfig,
    MarketConfig,
    PriceOracleConfig,
    PythConfig,
    VaultConfig,
)
from vault_ledger.fixed_point import SCALE
from vault_ledger.notifications import RecordingEventSink
from vault_ledger.oracles import StaticPriceOracle
from vault_ledger.services import YieldLedger

E = SCALE
START_TIME = 1_700_000_000

OWNER = "owner"
LEDGER = "ledger"
VAULT = "vault"
TREASURY = "treasury"
STAKING = "staking"


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: int = START_TIME) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_markets() -> dict[str, MarketConfig]:
    return {
        # Flat 5% so interest is easy to reason about.
        "USDC": MarketConfig(base_rate_bps=500, multiplier_bps=0, max_rate_bps=500),
        "USDT": MarketConfig(base_rate_bps=200, multiplier_bps=1000, max_rate_bps=5000),
    }


@pytest.fixture()
def sample_pyth_config() -> PythConfig:
    return PythConfig(
        hermes_url="https://hermes.example.com/v2/updates/price/latest",
        feeds={"BTC": "aaa111", "USDC": "bbb222", "USDT": "ccc333"},
    )


@pytest.fixture()
def sample_app_config(
    sample_markets: dict[str, MarketConfig], sample_pyth_config: PythConfig
) -> AppConfig:
    return AppConfig(
        ledger=LedgerConfig(owner=OWNER, address=LEDGER, vault_address=VAULT, treasury=TREASURY),
        assets=AssetsConfig(base="BTC", lst="lstBTC", ledger="LEDGER", alt=("WBTC",)),
        collateral=CollateralConfig(btc_ratio_pct=150, lst_btc_ratio_pct=120),
        vault=VaultConfig(),
        markets=sample_markets,
        price_oracle=PriceOracleConfig(provider="pyth", pyth=sample_pyth_config),
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tokens() -> dict[str, InMemoryToken]:
    return {
        symbol: InMemoryToken(symbol)
        for symbol in ("BTC", "lstBTC", "LEDGER", "WBTC", "USDC", "USDT")
    }


@pytest.fixture()
def oracle() -> StaticPriceOracle:
    return StaticPriceOracle(
        {"BTC": E, "lstBTC": E, "WBTC": E, "USDC": E, "USDT": E}
    )


@pytest.fixture()
def custodian(tokens: dict[str, InMemoryToken]) -> FixedRateCustodian:
    return FixedRateCustodian(tokens, VAULT, "BTC", "LEDGER", ("WBTC",))


@pytest.fixture()
def staking(tokens: dict[str, InMemoryToken]) -> RatioStakingService:
    return RatioStakingService(STAKING, tokens["BTC"], tokens["lstBTC"], holder=LEDGER)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture()
def ledger(
    sample_app_config: AppConfig,
    oracle: StaticPriceOracle,
    custodian: FixedRateCustodian,
    tokens: dict[str, InMemoryToken],
    staking: RatioStakingService,
    clock: FakeClock,
    events: RecordingEventSink,
) -> YieldLedger:
    return YieldLedger(
        sample_app_config,
        oracle,
        custodian,
        tokens,
        staking=staking,
        clock=clock,
        events=events,
    )


@pytest.fixture()
def fund(tokens: dict[str, InMemoryToken]):
    """Mint ``amount`` of ``symbol`` to ``user`` and approve ``spender`` for it."""

    def _fund(symbol: str, user: str, amount: int, spender: str) -> None:
        token = tokens[symbol]
        token.mint(user, amount)
        token.approve(user, spender, token.allowance(user, spender) + amount)

    return _fund


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    ledger:
      owner: "0xOWNER"
      address: ledger
      vault_address: vault
      treasury: "0xTREASURY"
    assets:
      base: BTC
      lst: lstBTC
      ledger: LEDGER
      alt: [WBTC]
    collateral:
      btc_ratio_pct: 150
      lst_btc_ratio_pct: 120
    vault:
      performance_fee_bps: 1000
      management_fee_bps: 200
      rebalance_threshold_bps: 500
      auto_rebalance: true
    markets:
      USDC:
        base_rate_bps: 200
        multiplier_bps: 1000
        max_rate_bps: 5000
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {BTC: "aaa", USDC: "bbb"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
