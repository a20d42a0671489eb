"""Collaborator contracts consumed by the exposure engine."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from domain import Account, Ticker, TradeIntent


@runtime_checkable
class ExchangeHandle(Protocol):
    """Authenticated venue client returning raw, exchange-native payloads."""

    async def fetch_balance(self) -> Mapping[str, Any] | list[Any]:
        """Return the raw balance payload of the authenticated account."""

    async def fetch_private_account_info(self) -> Mapping[str, Any] | list[Any]:
        """Return the raw account payload holding derivative positions."""

    async def fetch_ticker(self, symbol: str) -> Mapping[str, Any]:
        """Return the raw market payload for ``symbol``."""

    async def aclose(self) -> None:
        """Release transport resources held by the handle."""


class ExchangeSessionLike(Protocol):
    account_id: str
    handle: ExchangeHandle


class SessionProvider(Protocol):
    """Lazily acquires, and refreshes when needed, a session per account."""

    async def refresh_session(self, account: Account) -> ExchangeSessionLike:
        """Return a live session for ``account``."""


class OrderExecutor(Protocol):
    """Submits orders closing existing exposure."""

    async def close_order(self, account: Account, trade: TradeIntent, ticker: Ticker) -> None:
        """Close the exposure ``trade`` refers to on ``ticker``."""


__all__ = [
    "ExchangeHandle",
    "ExchangeSessionLike",
    "OrderExecutor",
    "SessionProvider",
]
