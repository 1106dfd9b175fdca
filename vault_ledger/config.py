"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 3600

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    owner: str = ""
    address: str = "ledger"
    vault_address: str = "vault"
    treasury: str = "treasury"


@dataclass(frozen=True)
class AssetsConfig:
    base: str = "BTC"
    lst: str = "lstBTC"
    ledger: str = "LEDGER"
    alt: tuple[str, ...] = ()


@dataclass(frozen=True)
class CollateralConfig:
    btc_ratio_pct: int = 150
    lst_btc_ratio_pct: int = 120


@dataclass(frozen=True)
class VaultConfig:
    performance_fee_bps: int = 1000
    management_fee_bps: int = 200
    rebalance_threshold_bps: int = 500
    auto_rebalance: bool = True
    yield_period_seconds: int = DAY_SECONDS
    management_fee_period_seconds: int = 30 * DAY_SECONDS


@dataclass(frozen=True)
class MarketConfig:
    base_rate_bps: int = 200
    multiplier_bps: int = 1000
    max_rate_bps: int = 5000


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "static"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    collateral: CollateralConfig = field(default_factory=CollateralConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)
    markets: dict[str, MarketConfig] = field(default_factory=dict)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_ledger(raw: dict[str, Any]) -> LedgerConfig:
    return LedgerConfig(
        owner=str(raw.get("owner", "")),
        address=str(raw.get("address", "ledger")),
        vault_address=str(raw.get("vault_address", "vault")),
        treasury=str(raw.get("treasury", "treasury")),
    )


def _build_assets(raw: dict[str, Any]) -> AssetsConfig:
    return AssetsConfig(
        base=raw.get("base", "BTC"),
        lst=raw.get("lst", "lstBTC"),
        ledger=raw.get("ledger", "LEDGER"),
        alt=tuple(raw.get("alt", [])),
    )


def _build_collateral(raw: dict[str, Any]) -> CollateralConfig:
    return CollateralConfig(
        btc_ratio_pct=int(raw.get("btc_ratio_pct", 150)),
        lst_btc_ratio_pct=int(raw.get("lst_btc_ratio_pct", 120)),
    )


def _build_vault(raw: dict[str, Any]) -> VaultConfig:
    return VaultConfig(
        performance_fee_bps=int(raw.get("performance_fee_bps", 1000)),
        management_fee_bps=int(raw.get("management_fee_bps", 200)),
        rebalance_threshold_bps=int(raw.get("rebalance_threshold_bps", 500)),
        auto_rebalance=bool(raw.get("auto_rebalance", True)),
        yield_period_seconds=int(raw.get("yield_period_seconds", DAY_SECONDS)),
        management_fee_period_seconds=int(
            raw.get("management_fee_period_seconds", 30 * DAY_SECONDS)
        ),
    )


def _build_markets(raw: dict[str, Any]) -> dict[str, MarketConfig]:
    markets: dict[str, MarketConfig] = {}
    for token, cfg in raw.items():
        markets[token] = MarketConfig(
            base_rate_bps=int(cfg.get("base_rate_bps", 200)),
            multiplier_bps=int(cfg.get("multiplier_bps", 1000)),
            max_rate_bps=int(cfg.get("max_rate_bps", 5000)),
        )
    return markets


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "static"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate ledger configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        ledger=_build_ledger(raw.get("ledger", {})),
        assets=_build_assets(raw.get("assets", {})),
        collateral=_build_collateral(raw.get("collateral", {})),
        vault=_build_vault(raw.get("vault", {})),
        markets=_build_markets(raw.get("markets", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.ledger.owner:
        raise ValueError("Ledger owner must be configured")

    if cfg.collateral.btc_ratio_pct <= 0 or cfg.collateral.lst_btc_ratio_pct <= 0:
        raise ValueError("Collateral ratios must be positive")

    for name in ("performance_fee_bps", "management_fee_bps", "rebalance_threshold_bps"):
        value = getattr(cfg.vault, name)
        if not 0 <= value <= 10_000:
            raise ValueError(f"vault.{name} must be within 0..10000, got {value}")

    if cfg.vault.yield_period_seconds <= 0:
        raise ValueError("vault.yield_period_seconds must be positive")

    core_assets = {cfg.assets.base, cfg.assets.lst, cfg.assets.ledger}
    if len(core_assets) != 3:
        raise ValueError("Base, lst and ledger assets must be distinct")
    for alt in cfg.assets.alt:
        if alt in core_assets:
            raise ValueError(f"Alt asset '{alt}' collides with a core asset")

    for token, market in cfg.markets.items():
        if market.max_rate_bps < market.base_rate_bps:
            raise ValueError(
                f"Market '{token}' max_rate_bps is below base_rate_bps"
            )
