from __future__ import annotations

import base64
import hashlib
import hmac
from urllib.parse import parse_qsl, urlencode

import httpx
import pytest

from domain import ExchangeCredentials, PositionSide
from execution.adapters import (
    VENUES,
    BinanceFuturesHandle,
    BinanceSpotHandle,
    FTXHandle,
    KrakenHandle,
    available_venues,
    get_venue,
)
from execution.adapters import binance, binance_futures, ftx, kraken
from execution.adapters import ftx as ftx_module
from execution.adapters import kraken as kraken_module
from execution.errors import ExchangeTransportError, UnsupportedExchangeError
from execution.exposure import ExchangeCapability, is_spot_ticker
from execution.normalization import spot_coin

CREDENTIALS = ExchangeCredentials(api_key="key", api_secret="secret", recv_window=5000)


def _client(handler, base_url: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


def test_registry_lists_capabilities() -> None:
    assert available_venues() == {
        "binance": ExchangeCapability.SPOT,
        "binance-futures": ExchangeCapability.FUTURES,
        "ftx": ExchangeCapability.COMPOSITE,
        "kraken": ExchangeCapability.SPOT,
    }
    assert get_venue(" FTX ") is VENUES["ftx"]
    with pytest.raises(UnsupportedExchangeError) as exc:
        get_venue("unknown")
    assert isinstance(exc.value, LookupError)


def test_binance_signing(monkeypatch) -> None:
    handle = BinanceSpotHandle(credentials=CREDENTIALS)
    monkeypatch.setattr(handle, "_timestamp_ms", lambda: 1_700_000_000_000)

    params, headers, body = handle._sign_request("GET", "/api/v3/account", params={}, headers={})

    expected_query = urlencode(sorted({"timestamp": "1700000000000", "recvWindow": "5000"}.items()))
    expected = hmac.new(b"secret", expected_query.encode(), hashlib.sha256).hexdigest()
    assert params["signature"] == expected
    assert headers["X-MBX-APIKEY"] == "key"
    assert body is None


def test_binance_sandbox_switches_base_url() -> None:
    assert BinanceSpotHandle(credentials=None)._base_url == "https://testnet.binance.vision"
    assert BinanceSpotHandle(credentials=None, sandbox=False)._base_url == "https://api.binance.com"
    assert BinanceFuturesHandle(credentials=None, sandbox=False)._base_url == "https://fapi.binance.com"


def test_binance_mappers() -> None:
    balances = binance.parse_balances(
        {"balances": [{"asset": "btc", "free": "0.5", "locked": "0.25"}, {"asset": "ETH", "free": "0", "locked": ""}]}
    )
    assert [(b.coin, b.free, b.total) for b in balances] == [("BTC", 0.5, 0.75), ("ETH", 0.0, 0.0)]
    assert binance.parse_positions({"balances": []}) == []

    ticker = binance.parse_ticker({"symbol": "BTCUSDT", "lastPrice": "30123.5"})
    assert ticker.symbol == "BTCUSDT"
    assert ticker.reference_price == pytest.approx(30123.5)
    assert is_spot_ticker(ticker)


def test_binance_futures_mappers() -> None:
    payload = {
        "assets": [{"asset": "USDT", "availableBalance": "-5", "walletBalance": "100"}],
        "positions": [
            {"symbol": "BTCUSDT", "positionAmt": "-0.5", "notional": "-15000", "entryPrice": "30000"},
            {"symbol": "ETHUSDT", "positionAmt": "2", "notional": "", "entryPrice": "1500"},
        ],
    }

    [usdt] = binance_futures.parse_balances(payload)
    assert (usdt.free, usdt.total) == (0.0, 100.0)

    short, long = binance_futures.parse_positions(payload)
    assert short.side is PositionSide.SHORT
    assert short.size == pytest.approx(0.5)
    assert short.cost == pytest.approx(15000.0)
    assert long.side is PositionSide.LONG
    assert long.cost == pytest.approx(3000.0)

    ticker = binance_futures.parse_ticker({"symbol": "BTCUSDT", "markPrice": "30000"})
    assert not is_spot_ticker(ticker)


def test_ftx_mappers_keep_market_type() -> None:
    balances = ftx.parse_balances(
        {"success": True, "result": [{"coin": "BTC", "free": 0.5, "total": 0.6}]}
    )
    assert balances[0].coin == "BTC"
    assert balances[0].total == pytest.approx(0.6)

    [position] = ftx.parse_positions(
        {"success": True, "result": {"positions": [{"future": "BTC-PERP", "side": "sell", "size": 1.5, "cost": -45000}]}}
    )
    assert position.side is PositionSide.SHORT
    assert position.notional_cost == pytest.approx(45000.0)

    future = ftx.parse_ticker(
        {"success": True, "result": {"name": "BTC-PERP", "type": "future", "underlying": "BTC", "last": 30000}}
    )
    spot = ftx.parse_ticker(
        {"success": True, "result": {"name": "BTC/USD", "type": "spot", "bid": 29990, "ask": 30010}}
    )
    assert not is_spot_ticker(future)
    assert is_spot_ticker(spot)
    assert spot.reference_price == pytest.approx(30000.0)


def test_ftx_signing_includes_subaccount(monkeypatch) -> None:
    credentials = ExchangeCredentials(api_key="key", api_secret="secret", subaccount="desk one")
    handle = FTXHandle(credentials=credentials)
    monkeypatch.setattr(ftx_module.time, "time", lambda: 1_700_000_000)

    _, headers, _ = handle._sign_request("GET", "/wallet/balances", params={}, headers={})

    prehash = "1700000000000GET/api/wallet/balances"
    assert headers["FTX-SIGN"] == hmac.new(b"secret", prehash.encode(), hashlib.sha256).hexdigest()
    assert headers["FTX-TS"] == "1700000000000"
    assert headers["FTX-SUBACCOUNT"] == "desk%20one"


def test_kraken_asset_codes() -> None:
    assert kraken.canonical_asset("XXBT") == "BTC"
    assert kraken.canonical_asset("ZUSD") == "USD"
    assert kraken.canonical_asset("XETC") == "ETC"
    assert kraken.canonical_asset("DOT.F") == "DOT"
    assert kraken.canonical_asset("USDT") == "USDT"


def test_kraken_mappers() -> None:
    balances = kraken.parse_balances({"error": [], "result": {"XXBT": "0.5", "ZUSD": "-1"}})
    assert [(b.coin, b.free) for b in balances] == [("BTC", 0.5), ("USD", 0.0)]

    [position] = kraken.parse_positions(
        {"error": [], "result": {"TX1": {"pair": "XXBTZUSD", "type": "sell", "vol": "2", "vol_closed": "0.5", "cost": "45000"}}}
    )
    assert position.side is PositionSide.SHORT
    assert position.size == pytest.approx(1.5)

    ticker = kraken.parse_ticker({"error": [], "result": {"XXBTZUSD": {"c": ["30000.1", "0.01"]}}})
    assert ticker.symbol == "XXBTZUSD"
    assert ticker.reference_price == pytest.approx(30000.1)


def test_kraken_signing(monkeypatch) -> None:
    secret = base64.b64encode(b"kraken-secret").decode()
    handle = KrakenHandle(credentials=ExchangeCredentials(api_key="key", api_secret=secret))
    monkeypatch.setattr(kraken_module.time, "time", lambda: 1_700_000_000)

    params, headers, body = handle._sign_request("POST", "/0/private/Balance", params={}, headers={})

    postdata = urlencode(body)
    digest = hashlib.sha256(("1700000000000" + postdata).encode()).digest()
    expected = hmac.new(b"kraken-secret", b"/0/private/Balance" + digest, hashlib.sha512).digest()
    assert params == {}
    assert body == {"nonce": "1700000000000"}
    assert headers["API-Sign"] == base64.b64encode(expected).decode()


def test_kraken_rejects_non_base64_secret() -> None:
    handle = KrakenHandle(credentials=ExchangeCredentials(api_key="key", api_secret="not base64!"))
    with pytest.raises(ExchangeTransportError):
        handle._sign_request("POST", "/0/private/Balance", params={}, headers={})


@pytest.mark.asyncio
async def test_kraken_posts_form_body() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["form"] = dict(parse_qsl(request.content.decode()))
        return httpx.Response(200, json={"error": [], "result": {"XXBT": "1.0"}})

    secret = base64.b64encode(b"kraken-secret").decode()
    async with _client(handler, "https://api.sandbox.kraken.com") as client:
        handle = KrakenHandle(credentials=ExchangeCredentials(api_key="key", api_secret=secret), http_client=client)
        payload = await handle.fetch_balance()

    assert seen["method"] == "POST"
    assert "nonce" in seen["form"]
    assert kraken.parse_balances(payload)[0].coin == "BTC"


@pytest.mark.asyncio
async def test_ftx_fetch_ticker_is_unsigned() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/markets/BTC-PERP"
        assert "FTX-KEY" not in request.headers
        return httpx.Response(200, json={"success": True, "result": {"name": "BTC-PERP", "type": "future", "last": 1.0}})

    async with _client(handler, "https://ftx.com/api") as client:
        handle = FTXHandle(credentials=None, http_client=client)
        payload = await handle.fetch_ticker("BTC-PERP")

    assert ftx.parse_ticker(payload).symbol == "BTC-PERP"


@pytest.mark.parametrize(
    ("response", "message"),
    [
        (httpx.Response(429, json={}), "rate limited"),
        (httpx.Response(503, json={}), "transient"),
        (httpx.Response(401, text="unauthorized"), "HTTP 401"),
        (httpx.Response(200, text="not-json"), "Invalid JSON"),
        (httpx.Response(200, json="scalar"), "Unexpected response"),
        (httpx.Response(200, json={"code": -2015, "msg": "Invalid API-key"}), "Binance error -2015"),
    ],
)
@pytest.mark.asyncio
async def test_request_errors_are_transport_errors(response: httpx.Response, message: str) -> None:
    async with _client(lambda request: response, "https://testnet.binance.vision") as client:
        handle = BinanceSpotHandle(credentials=CREDENTIALS, http_client=client)
        with pytest.raises(ExchangeTransportError) as exc:
            await handle.fetch_balance()

    assert message in str(exc.value)
    assert exc.value.exchange == "binance"


@pytest.mark.asyncio
async def test_network_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler, "https://testnet.binancefuture.com") as client:
        handle = BinanceFuturesHandle(credentials=CREDENTIALS, http_client=client)
        with pytest.raises(ExchangeTransportError) as exc:
            await handle.fetch_private_account_info()

    assert isinstance(exc.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_private_requests_require_credentials() -> None:
    handle = BinanceSpotHandle(credentials=None)
    with pytest.raises(ExchangeTransportError):
        await handle.fetch_balance()
    await handle.aclose()


@pytest.mark.parametrize(
    "mapper, payload",
    [
        (ftx.parse_balances, {"success": True, "result": [{"coin": "BTC", "free": "garbage", "total": "1"}]}),
        (binance.parse_balances, {"balances": [{"asset": "BTC", "free": "garbage", "locked": "0"}]}),
        (kraken.parse_balances, {"error": [], "result": {"XXBT": {"amount": "1"}}}),
    ],
)
def test_balance_mappers_reject_malformed_numbers(mapper, payload) -> None:
    with pytest.raises(ValueError):
        mapper(payload)


@pytest.mark.parametrize(
    "mapper, payload",
    [
        (ftx.parse_positions, {"success": True, "result": {"positions": [{"future": "BTC-PERP", "size": "2", "cost": "-6000"}]}}),
        (kraken.parse_positions, {"error": [], "result": {"TX1": {"pair": "XXBTZUSD", "vol": "2", "cost": "45000"}}}),
    ],
)
def test_position_mappers_require_a_side(mapper, payload) -> None:
    with pytest.raises(ValueError):
        mapper(payload)


@pytest.mark.parametrize("symbol", ["XBT/USD", "XBTUSD", "XXBTZUSD"])
def test_kraken_pairs_resolve_to_balance_coin(symbol: str) -> None:
    venue = get_venue("kraken")
    coin = spot_coin(symbol, venue.quote_assets)

    assert venue.coin_resolver(coin) == "BTC"
