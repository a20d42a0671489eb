# SPDX-License-Identifier: MIT
"""Normalized balance and position snapshots read from exchange sessions."""

from __future__ import annotations

from typing import Any, Callable

from core.utils.logging import StructuredLogger, get_logger
from domain import Account, Balance, Position
from interfaces.execution import ExchangeHandle, SessionProvider

from .errors import BalancesFetchError, PositionsFetchError

BalanceMapper = Callable[[Any], list[Balance]]
PositionMapper = Callable[[Any], list[Position]]


class ExchangeReader:
    """Fetch balances and positions for an account and drop empty entries.

    Raw payloads are mapped through the venue's mapper functions; any failure
    on the way, transport or mapping, is reported as a fetch error so callers
    can tell "no exposure" apart from "exposure unknown".
    """

    def __init__(
        self,
        exchange: str,
        sessions: SessionProvider,
        *,
        balance_mapper: BalanceMapper,
        position_mapper: PositionMapper,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.exchange = exchange
        self._sessions = sessions
        self._balance_mapper = balance_mapper
        self._position_mapper = position_mapper
        self._logger = logger or get_logger(__name__, exchange=exchange)

    async def _handle(self, account: Account) -> ExchangeHandle:
        session = await self._sessions.refresh_session(account)
        return session.handle

    async def fetch_balances(self, account: Account, handle: ExchangeHandle | None = None) -> list[Balance]:
        try:
            if handle is None:
                handle = await self._handle(account)
            payload = await handle.fetch_balance()
            balances = [balance for balance in self._balance_mapper(payload) if balance.free > 0]
        except Exception as exc:
            self._logger.error(
                "Failed to read balances", account=account.account_id, error=str(exc)
            )
            raise BalancesFetchError(
                "Failed to read balances",
                exchange=self.exchange,
                account_id=account.account_id,
                cause=exc,
            ) from exc
        self._logger.debug("Balances read", account=account.account_id, count=len(balances))
        return balances

    async def fetch_positions(self, account: Account) -> list[Position]:
        try:
            handle = await self._handle(account)
            payload = await handle.fetch_private_account_info()
            positions = [position for position in self._position_mapper(payload) if position.size > 0]
        except Exception as exc:
            self._logger.error(
                "Failed to read positions", account=account.account_id, error=str(exc)
            )
            raise PositionsFetchError(
                "Failed to read positions",
                exchange=self.exchange,
                account_id=account.account_id,
                cause=exc,
            ) from exc
        self._logger.debug(
            "Positions read",
            account=account.account_id,
            positions=[position.to_dict() for position in positions],
        )
        return positions


__all__ = ["BalanceMapper", "ExchangeReader", "PositionMapper"]
