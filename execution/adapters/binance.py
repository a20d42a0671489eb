# SPDX-License-Identifier: MIT
"""Binance spot handle and payload mapping."""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any, Dict, Mapping
from urllib.parse import urlencode

import httpx

from domain import Balance, ExchangeCredentials, Position, Ticker

from ..errors import ExchangeTransportError
from .base import RESTExchangeHandle, parse_float


class BinanceSpotHandle(RESTExchangeHandle):
    """Read-only Binance spot handle covering account and ticker endpoints."""

    exchange = "binance"

    def __init__(
        self,
        *,
        credentials: ExchangeCredentials | None,
        sandbox: bool = True,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
        base_url: str | None = None,
    ) -> None:
        if base_url is None:
            base_url = "https://testnet.binance.vision" if sandbox else "https://api.binance.com"
        super().__init__(
            base_url=base_url,
            credentials=credentials,
            sandbox=sandbox,
            http_client=http_client,
            timeout=timeout,
        )

    def _timestamp_ms(self) -> int:
        return int(time.time() * 1000)

    def _sign_request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any],
        headers: Dict[str, str],
    ) -> tuple[Dict[str, Any], Dict[str, str], Any | None]:
        params = dict(params)
        params.setdefault("timestamp", str(self._timestamp_ms()))
        recv_window = self._credentials.recv_window if self._credentials is not None else None
        if recv_window and "recvWindow" not in params:
            params["recvWindow"] = str(recv_window)
        query = urlencode(sorted(params.items()))
        params["signature"] = hmac.new(
            self.api_secret.encode("utf-8"), query.encode("utf-8"), hashlib.sha256
        ).hexdigest()
        headers = dict(headers)
        headers["X-MBX-APIKEY"] = self.api_key
        return params, headers, None

    def _check_payload(self, payload: Mapping[str, Any] | list) -> Mapping[str, Any] | list:
        if isinstance(payload, Mapping) and "code" in payload and "msg" in payload:
            raise ExchangeTransportError(
                f"Binance error {payload['code']}: {payload['msg']}", exchange=self.exchange
            )
        return payload

    def _balance_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "GET", "/api/v3/account", {}

    def _account_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        # spot accounts hold no derivative positions; the account payload is
        # returned as-is and maps to an empty position list
        return "GET", "/api/v3/account", {}

    def _ticker_endpoint(self, symbol: str) -> tuple[str, Dict[str, Any]]:
        return "/api/v3/ticker/24hr", {"symbol": symbol.replace("/", "").upper()}


def parse_balances(payload: Mapping[str, Any]) -> list[Balance]:
    """Map ``{asset, free, locked}`` entries onto balances."""

    balances: list[Balance] = []
    for entry in payload.get("balances") or []:
        free = parse_float(entry.get("free"))
        locked = parse_float(entry.get("locked"))
        balances.append(
            Balance(coin=str(entry.get("asset", "")).upper(), free=free, total=free + locked)
        )
    return balances


def parse_positions(payload: Mapping[str, Any]) -> list[Position]:
    return []


def parse_ticker(payload: Mapping[str, Any], symbol: str | None = None) -> Ticker:
    """Use ``lastPrice`` of the 24h ticker as reference price."""

    return Ticker(
        symbol=symbol or str(payload.get("symbol", "")).upper(),
        reference_price=parse_float(payload.get("lastPrice")),
        raw_info=payload,
    )


__all__ = ["BinanceSpotHandle", "parse_balances", "parse_positions", "parse_ticker"]
