"""Unit tests for Pyth oracle — price response parsing and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vault_ledger.config import PythConfig
from vault_ledger.errors import PriceUnavailable
from vault_ledger.fixed_point import SCALE
from vault_ledger.oracles.pyth import PythOracle, scale_pyth_price


@pytest.fixture()
def oracle() -> PythOracle:
    return PythOracle(
        PythConfig(
            hermes_url="https://hermes.example.com/v2/updates/price/latest",
            feeds={"BTC": "aaa111", "WBTC": "aaa111", "USDC": "ccc333"},
        )
    )


def _make_pyth_response(items: list[dict]) -> dict:
    return {"parsed": items}


def _mock_session(status: int = 200, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


SAMPLE_ITEMS = [
    {"id": "aaa111", "price": {"price": "6500000000000", "expo": "-8"}},
    {"id": "ccc333", "price": {"price": "100000000", "expo": "-8"}},
]


class TestScalePythPrice:
    def test_negative_exponent(self) -> None:
        assert scale_pyth_price(350000000, -8) == 35 * SCALE // 10

    def test_exponent_below_precision_truncates(self) -> None:
        assert scale_pyth_price(123, -20) == 1

    def test_positive_exponent(self) -> None:
        assert scale_pyth_price(2, 1) == 20 * SCALE


class TestPythOracleFetchPrices:
    @pytest.mark.asyncio
    async def test_parses_response_correctly(self, oracle: PythOracle) -> None:
        session = _mock_session(data=_make_pyth_response(SAMPLE_ITEMS))

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                prices = await oracle.fetch_prices()

        assert prices["BTC"] == 65_000 * SCALE
        # Shared feed id serves both symbols.
        assert prices["WBTC"] == 65_000 * SCALE
        assert prices["USDC"] == SCALE

    @pytest.mark.asyncio
    async def test_handles_http_error(self, oracle: PythOracle) -> None:
        session = _mock_session(status=500)

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                prices = await oracle.fetch_prices()

        assert prices == {}

    @pytest.mark.asyncio
    async def test_handles_network_error(self, oracle: PythOracle) -> None:
        session = _mock_session()
        session.get = MagicMock(side_effect=ConnectionError("timeout"))

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                prices = await oracle.fetch_prices()

        assert prices == {}

    @pytest.mark.asyncio
    async def test_handles_malformed_body(self, oracle: PythOracle) -> None:
        session = _mock_session()
        session.get.return_value.json = AsyncMock(side_effect=ValueError("not json"))

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                assert await oracle.refresh() == 0

        with pytest.raises(PriceUnavailable):
            oracle.get_latest_price("BTC")

    @pytest.mark.asyncio
    async def test_symbol_filter(self, oracle: PythOracle) -> None:
        session = _mock_session(data=_make_pyth_response(SAMPLE_ITEMS[1:]))

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                prices = await oracle.fetch_prices(symbols=["USDC"])

        assert prices == {"USDC": SCALE}
        url = session.get.call_args.args[0]
        assert "ids[]=ccc333" in url
        assert "aaa111" not in url

    @pytest.mark.asyncio
    async def test_empty_feeds_returns_empty(self) -> None:
        oracle = PythOracle(PythConfig(hermes_url="https://x.com", feeds={}))
        assert await oracle.fetch_prices() == {}


class TestPythOracleSnapshot:
    @pytest.mark.asyncio
    async def test_refresh_serves_latest(self, oracle: PythOracle) -> None:
        session = _mock_session(data=_make_pyth_response(SAMPLE_ITEMS))

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                count = await oracle.refresh()

        assert count == 3
        assert oracle.get_latest_price("BTC") == 65_000 * SCALE

    @pytest.mark.asyncio
    async def test_refresh_ignores_non_positive(self, oracle: PythOracle) -> None:
        items = [{"id": "ccc333", "price": {"price": "0", "expo": "-8"}}]
        session = _mock_session(data=_make_pyth_response(items))

        with patch("vault_ledger.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("vault_ledger.oracles.pyth.aiohttp.TCPConnector"):
                assert await oracle.refresh(["USDC"]) == 0

        with pytest.raises(PriceUnavailable):
            oracle.get_latest_price("USDC")

    def test_unknown_symbol(self, oracle: PythOracle) -> None:
        with pytest.raises(PriceUnavailable):
            oracle.get_latest_price("BTC")
