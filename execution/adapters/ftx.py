# SPDX-License-Identifier: MIT
"""FTX-style composite venue: spot wallet and futures positions under one account."""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any, Dict, Mapping
from urllib.parse import quote, urlencode

import httpx

from domain import Balance, ExchangeCredentials, Position, Ticker

from ..errors import ExchangeTransportError
from .base import RESTExchangeHandle, parse_float


class FTXHandle(RESTExchangeHandle):
    """Read-only handle for FTX wallet, account and market endpoints."""

    exchange = "ftx"
    _API_PREFIX = "/api"

    def __init__(
        self,
        *,
        credentials: ExchangeCredentials | None,
        sandbox: bool = True,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
        base_url: str = "https://ftx.com/api",
    ) -> None:
        super().__init__(
            base_url=base_url,
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
        timestamp = str(int(time.time() * 1000))
        target = f"{self._API_PREFIX}{path}"
        if params:
            target = f"{target}?{urlencode(params)}"
        prehash = f"{timestamp}{method.upper()}{target}"
        signature = hmac.new(
            self.api_secret.encode("utf-8"), prehash.encode("utf-8"), hashlib.sha256
        ).hexdigest()
        headers = dict(headers)
        headers["FTX-KEY"] = self.api_key
        headers["FTX-TS"] = timestamp
        headers["FTX-SIGN"] = signature
        subaccount = self._credentials.subaccount if self._credentials is not None else None
        if subaccount:
            headers["FTX-SUBACCOUNT"] = quote(subaccount)
        return params, headers, None

    def _check_payload(self, payload: Mapping[str, Any] | list) -> Mapping[str, Any] | list:
        if isinstance(payload, Mapping) and payload.get("success") is False:
            raise ExchangeTransportError(
                f"FTX error: {payload.get('error') or 'unknown error'}", exchange=self.exchange
            )
        return payload

    def _balance_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "GET", "/wallet/balances", {}

    def _account_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "GET", "/account", {}

    def _ticker_endpoint(self, symbol: str) -> tuple[str, Dict[str, Any]]:
        return f"/markets/{symbol}", {}


def _result(payload: Mapping[str, Any] | list) -> Any:
    if isinstance(payload, Mapping) and "result" in payload:
        return payload["result"]
    return payload


def parse_balances(payload: Mapping[str, Any] | list) -> list[Balance]:
    """Map wallet ``{coin, free, total}`` entries onto balances."""

    balances: list[Balance] = []
    for entry in _result(payload) or []:
        free = parse_float(entry.get("free"))
        total = max(parse_float(entry.get("total")), free)
        balances.append(Balance(coin=str(entry.get("coin", "")).upper(), free=free, total=total))
    return balances


def parse_positions(payload: Mapping[str, Any]) -> list[Position]:
    """Map account ``positions`` (``future``/``side``/``size``/``cost``) onto positions."""

    account = _result(payload) or {}
    positions: list[Position] = []
    for entry in account.get("positions") or []:
        positions.append(
            Position(
                instrument_symbol=str(entry.get("future", "")),
                side=entry.get("side"),
                size=abs(parse_float(entry.get("size"))),
                cost=parse_float(entry.get("cost")),
            )
        )
    return positions


def parse_ticker(payload: Mapping[str, Any], symbol: str | None = None) -> Ticker:
    """Use ``last`` (falling back to ``price``) as reference price; keep ``type``/``underlying``."""

    market = _result(payload) or {}
    price = parse_float(market.get("last")) or parse_float(market.get("price"))
    if not price:
        bid = parse_float(market.get("bid"))
        ask = parse_float(market.get("ask"))
        price = (bid + ask) / 2 if bid and ask else 0.0
    return Ticker(
        symbol=symbol or str(market.get("name", "")),
        reference_price=price,
        raw_info=market,
    )


__all__ = ["FTXHandle", "parse_balances", "parse_positions", "parse_ticker"]
