"""Pyth Network price oracle service."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import PriceUnavailable
from ..fixed_point import SCALE

logger = logging.getLogger(__name__)

PRICE_DECIMALS = 18


def scale_pyth_price(price_raw: int, expo: int) -> int:
    """Convert a Pyth ``price * 10**expo`` pair into a 1e18-scaled integer."""
    shift = PRICE_DECIMALS + expo
    if shift >= 0:
        return price_raw * 10**shift
    return price_raw // 10**-shift


class PythOracle:
    """Fetch prices from Pyth Network and serve the last good snapshot."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self._prices: dict[str, int] = {}

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, int]:
        """Fetch current prices from Pyth Network.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.

        Returns:
            1e18-scaled prices keyed by symbol; empty on HTTP or network error.
        """
        prices: dict[str, int] = {}

        feeds = self.price_feeds
        if symbols is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in symbols}

        feed_ids = list(set(feeds.values()))
        if not feed_ids:
            return prices

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return prices

                    data = await response.json()
                    parsed = data.get("parsed", [])

                    id_to_assets: dict[str, list[str]] = {}
                    for asset, feed_id in feeds.items():
                        id_to_assets.setdefault(feed_id, []).append(asset)

                    for item in parsed:
                        feed_id = item.get("id")
                        price_data = item.get("price", {})
                        price = scale_pyth_price(
                            int(price_data.get("price", 0)),
                            int(price_data.get("expo", 0)),
                        )

                        for asset in id_to_assets.get(feed_id, []):
                            prices[asset] = price

                    logger.info("Fetched %d prices from Pyth Network", len(prices))
                    for asset, price in sorted(prices.items()):
                        logger.debug("  %s: %d (%d.%02d USD)", asset, price,
                                     price // SCALE, price % SCALE * 100 // SCALE)

        except (aiohttp.ClientError, ConnectionError, TimeoutError, ValueError) as e:
            logger.error("Error fetching prices from Pyth: %s", e)

        return prices

    async def refresh(self, symbols: list[str] | None = None) -> int:
        """Fetch prices and merge positive ones into the served snapshot."""
        fetched = await self.fetch_prices(symbols)
        accepted = {k: v for k, v in fetched.items() if v > 0}
        self._prices.update(accepted)
        return len(accepted)

    def get_latest_price(self, token: str) -> int:
        try:
            return self._prices[token]
        except KeyError:
            raise PriceUnavailable(f"No Pyth price cached for {token}") from None
