# SPDX-License-Identifier: MIT
"""Binance USD-M futures handle extending the spot handle with futures endpoints."""

from __future__ import annotations

from typing import Any, Dict, Mapping

import httpx

from domain import Balance, ExchangeCredentials, Position, PositionSide, Ticker

from .base import parse_float
from .binance import BinanceSpotHandle


class BinanceFuturesHandle(BinanceSpotHandle):
    """Read-only handle for the Binance USD-M futures account."""

    exchange = "binance-futures"

    def __init__(
        self,
        *,
        credentials: ExchangeCredentials | None,
        sandbox: bool = True,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> None:
        super().__init__(
            credentials=credentials,
            sandbox=sandbox,
            http_client=http_client,
            timeout=timeout,
            base_url="https://testnet.binancefuture.com" if sandbox else "https://fapi.binance.com",
        )

    # ------------------------------------------------------------------
    # Endpoint overrides
    def _balance_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "GET", "/fapi/v2/account", {}

    def _account_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        return "GET", "/fapi/v2/account", {}

    def _ticker_endpoint(self, symbol: str) -> tuple[str, Dict[str, Any]]:
        return "/fapi/v1/premiumIndex", {"symbol": symbol.replace("/", "").upper()}


def parse_balances(payload: Mapping[str, Any]) -> list[Balance]:
    """Map margin ``assets`` (``availableBalance``/``walletBalance``) onto balances."""

    balances: list[Balance] = []
    for asset in payload.get("assets") or []:
        free = max(parse_float(asset.get("availableBalance")), 0.0)
        total = max(parse_float(asset.get("walletBalance")), free)
        balances.append(Balance(coin=str(asset.get("asset", "")).upper(), free=free, total=total))
    return balances


def parse_positions(payload: Mapping[str, Any]) -> list[Position]:
    """Map signed ``positionAmt`` entries onto unsigned positions."""

    positions: list[Position] = []
    for position in payload.get("positions") or []:
        quantity = parse_float(position.get("positionAmt"))
        notional = parse_float(position.get("notional"))
        if not notional:
            notional = abs(quantity) * parse_float(position.get("entryPrice"))
        positions.append(
            Position(
                instrument_symbol=str(position.get("symbol", "")).upper(),
                side=PositionSide.LONG if quantity >= 0 else PositionSide.SHORT,
                size=abs(quantity),
                cost=abs(notional),
            )
        )
    return positions


def parse_ticker(payload: Mapping[str, Any], symbol: str | None = None) -> Ticker:
    """Use the mark price as reference price; ``contract`` flags the derivative market."""

    return Ticker(
        symbol=symbol or str(payload.get("symbol", "")).upper(),
        reference_price=parse_float(payload.get("markPrice")),
        raw_info={**payload, "contract": True},
    )


__all__ = ["BinanceFuturesHandle", "parse_balances", "parse_positions", "parse_ticker"]
