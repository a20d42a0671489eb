# SPDX-License-Identifier: MIT
"""Kraken spot handle and payload mapping."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time
from typing import Any, Dict, Mapping
from urllib.parse import urlencode

import httpx

from domain import Balance, ExchangeCredentials, Position, Ticker

from ..errors import ExchangeTransportError
from ..normalization import DEFAULT_QUOTE_ASSETS
from .base import RESTExchangeHandle, parse_float

_ASSET_ALIASES = {
    "XXBT": "BTC",
    "XBT": "BTC",
    "XXDG": "DOGE",
    "XDG": "DOGE",
    "XETH": "ETH",
    "XLTC": "LTC",
    "XXRP": "XRP",
    "XXLM": "XLM",
    "ZUSD": "USD",
    "ZEUR": "EUR",
    "ZGBP": "GBP",
}


# Pair names use the legacy codes on both legs, e.g. ``XXBTZUSD`` or ``XETHXXBT``.
QUOTE_ASSETS: tuple[str, ...] = ("ZUSD", "ZEUR", "ZGBP", "XXBT", "XETH", "XBT") + DEFAULT_QUOTE_ASSETS


def canonical_asset(asset: str) -> str:
    """Translate Kraken asset codes (``XXBT``, ``ZUSD``, ``ETH.F``) to common coin codes."""

    code = asset.strip().upper().split(".", 1)[0]
    if code in _ASSET_ALIASES:
        return _ASSET_ALIASES[code]
    if len(code) == 4 and code[0] in {"X", "Z"}:
        return code[1:]
    return code


class KrakenHandle(RESTExchangeHandle):
    """Read-only Kraken spot handle."""

    exchange = "kraken"

    def __init__(
        self,
        *,
        credentials: ExchangeCredentials | None,
        sandbox: bool = True,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> None:
        super().__init__(
            base_url="https://api.sandbox.kraken.com" if sandbox else "https://api.kraken.com",
            credentials=credentials,
            sandbox=sandbox,
            http_client=http_client,
            timeout=timeout,
        )

    def _sign_request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any],
        headers: Dict[str, str],
    ) -> tuple[Dict[str, Any], Dict[str, str], Any | None]:
        try:
            secret = base64.b64decode(self.api_secret, validate=True)
        except binascii.Error as exc:
            raise ExchangeTransportError(
                "Kraken api_secret must be base64 encoded", exchange=self.exchange, cause=exc
            ) from exc
        payload = dict(params)
        payload.setdefault("nonce", str(int(time.time() * 1000)))
        postdata = urlencode(payload)
        sha256_hash = hashlib.sha256((payload["nonce"] + postdata).encode("utf-8")).digest()
        signature = hmac.new(secret, path.encode("utf-8") + sha256_hash, hashlib.sha512).digest()
        headers = dict(headers)
        headers["API-Key"] = self.api_key
        headers["API-Sign"] = base64.b64encode(signature).decode("utf-8")
        headers["Content-Type"] = "application/x-www-form-urlencoded; charset=utf-8"
        return {}, headers, payload

    def _check_payload(self, payload: Mapping[str, Any] | list) -> Mapping[str, Any] | list:
        if isinstance(payload, Mapping) and payload.get("error"):
            raise ExchangeTransportError(
                f"Kraken error: {', '.join(map(str, payload['error']))}", exchange=self.exchange
            )
        return payload

    def _balance_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "POST", "/0/private/Balance", {}

    def _account_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "POST", "/0/private/OpenPositions", {}

    def _ticker_endpoint(self, symbol: str) -> tuple[str, Dict[str, Any]]:
        return "/0/public/Ticker", {"pair": symbol.replace("/", "").upper()}


def parse_balances(payload: Mapping[str, Any]) -> list[Balance]:
    """Kraken only reports totals; the whole amount is treated as free."""

    balances: list[Balance] = []
    for asset, amount in (payload.get("result") or {}).items():
        quantity = max(parse_float(amount), 0.0)
        balances.append(Balance(coin=canonical_asset(asset), free=quantity, total=quantity))
    return balances


def parse_positions(payload: Mapping[str, Any]) -> list[Position]:
    """Map open margin positions (``pair``/``type``/``vol``/``vol_closed``/``cost``)."""

    positions: list[Position] = []
    for entry in (payload.get("result") or {}).values():
        size = parse_float(entry.get("vol")) - parse_float(entry.get("vol_closed"))
        positions.append(
            Position(
                instrument_symbol=str(entry.get("pair", "")),
                side=entry.get("type"),
                size=max(size, 0.0),
                cost=parse_float(entry.get("cost")),
            )
        )
    return positions


def parse_ticker(payload: Mapping[str, Any], symbol: str | None = None) -> Ticker:
    """Use the last trade close price ``c[0]`` as reference price."""

    result = payload.get("result") or {}
    pair, market = next(iter(result.items()), ("", {}))
    close = market.get("c") or [0.0]
    return Ticker(
        symbol=symbol or pair,
        reference_price=parse_float(close[0]),
        raw_info={"pair": pair, **market},
    )


__all__ = [
    "KrakenHandle",
    "QUOTE_ASSETS",
    "canonical_asset",
    "parse_balances",
    "parse_positions",
    "parse_ticker",
]
