"""Command-line interface for inspecting ledger configuration and prices."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import AppConfig, load_config
from .fixed_point import SCALE
from .logging_setup import configure_logging
from .models import TokenState
from .oracles import PythOracle
from .services import InterestRateModel, RateParams

logger = logging.getLogger(__name__)

UTILIZATION_STEPS = tuple(range(0, 101, 10))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="vault-ledger",
        description="Share-vault and lending ledger tooling",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    rates_parser = sub.add_parser("rates", help="Borrow rate curve per market")
    rates_parser.add_argument(
        "token",
        nargs="?",
        default=None,
        help="Only show this market",
    )

    prices_parser = sub.add_parser("prices", help="Fetch prices from Pyth")
    prices_parser.add_argument(
        "symbols",
        nargs="*",
        help="Symbols to fetch (default: all configured feeds)",
    )

    return parser


def format_scaled(value: int, decimals: int = 4) -> str:
    """Render a 1e18-scaled integer as a fixed-point decimal string."""
    whole, frac = divmod(value, SCALE)
    frac_digits = frac * 10**decimals // SCALE
    return f"{whole}.{frac_digits:0{decimals}d}"


def rate_curve(params: RateParams) -> list[tuple[int, int]]:
    """Borrow rate at each utilization step, as (percent, scaled rate)."""
    model = InterestRateModel()
    model.register("_", params)
    curve: list[tuple[int, int]] = []
    for pct in UTILIZATION_STEPS:
        state = TokenState(reserves=100 - pct, total_borrows_principal=pct)
        curve.append((pct, model.borrow_rate("_", state)))
    return curve


def print_rates(config: AppConfig, token: str | None = None) -> int:
    markets = config.markets
    if token is not None:
        if token not in markets:
            print(f"Unknown market: {token}", file=sys.stderr)
            return 1
        markets = {token: markets[token]}

    for name, market in markets.items():
        print(f"{name}  base={market.base_rate_bps}bps "
              f"multiplier={market.multiplier_bps}bps max={market.max_rate_bps}bps")
        for pct, rate in rate_curve(RateParams.from_market(market)):
            print(f"  utilization {pct:3d}%  rate {format_scaled(rate * 100, 2):>6}%")
    return 0


async def print_prices(config: AppConfig, symbols: list[str]) -> int:
    oracle = PythOracle(config.price_oracle.pyth)
    prices = await oracle.fetch_prices(symbols or None)
    if not prices:
        logger.error("No prices fetched")
        return 1
    for symbol, price in sorted(prices.items()):
        print(f"{symbol:>10}  {format_scaled(price)} USD")
    return 0


def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "rates":
        return print_rates(config, args.token)
    if args.command == "prices":
        return asyncio.run(print_prices(config, args.symbols))

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(_run(args))
