# SPDX-License-Identifier: MIT
"""Errors raised while reading exposure and enforcing risk limits."""

from __future__ import annotations

from domain.trade import InvalidSizeSpecError


class ExchangeError(RuntimeError):
    """Base exception carrying the exchange/account/symbol context of a failure."""

    def __init__(
        self,
        message: str,
        *,
        exchange: str | None = None,
        account_id: str | None = None,
        symbol: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.exchange = exchange
        self.account_id = account_id
        self.symbol = symbol
        self.cause = cause
        super().__init__(self._render(message))

    def _render(self, message: str) -> str:
        context = [
            f"{label}={value}"
            for label, value in (
                ("exchange", self.exchange),
                ("account", self.account_id),
                ("symbol", self.symbol),
            )
            if value
        ]
        rendered = message
        if context:
            rendered = f"{rendered} [{', '.join(context)}]"
        if self.cause is not None:
            rendered = f"{rendered}: {type(self.cause).__name__}: {self.cause}"
        return rendered


class ExchangeTransportError(ExchangeError):
    """Raised by transport handles when a venue request fails."""


class ExchangeSessionError(ExchangeError):
    """Raised when an exchange session cannot be created or authenticated."""


class UnsupportedExchangeError(ExchangeError, LookupError):
    """Raised when no venue definition exists for an exchange identifier."""


class BalancesFetchError(ExchangeError):
    """Raised when account balances cannot be fetched or mapped."""


class PositionsFetchError(ExchangeError):
    """Raised when account positions cannot be fetched or mapped."""


class TickerFetchError(ExchangeError):
    """Raised when the spot exposure of a ticker cannot be resolved."""


class NoOpenPositionError(ExchangeError):
    """Raised when no open derivative position exists for a ticker."""


class RiskError(ExchangeError):
    """Base exception for risk-control violations."""


class OpenPositionError(RiskError):
    """Raised when opening a trade would breach the symbol's maximum budget."""


__all__ = [
    "BalancesFetchError",
    "ExchangeError",
    "ExchangeSessionError",
    "ExchangeTransportError",
    "InvalidSizeSpecError",
    "NoOpenPositionError",
    "OpenPositionError",
    "PositionsFetchError",
    "RiskError",
    "TickerFetchError",
    "UnsupportedExchangeError",
]
