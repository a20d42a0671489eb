# SPDX-License-Identifier: MIT
"""Lazily created, periodically refreshed exchange sessions keyed by account."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict

from core.utils.logging import get_logger
from domain import Account
from interfaces.execution import ExchangeHandle

from .errors import ExchangeSessionError

HandleFactory = Callable[[Account], ExchangeHandle]


@dataclass(slots=True)
class ExchangeSession:
    """Live handle bound to one account."""

    account_id: str
    exchange: str
    handle: ExchangeHandle
    created_at: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.created_at)


class SessionRegistry:
    """Session provider caching one handle per account id.

    Sessions older than ``ttl_seconds`` are rebuilt on the next
    :meth:`refresh_session` call and the replaced handle is closed.
    """

    def __init__(
        self,
        exchange: str,
        factory: HandleFactory,
        *,
        ttl_seconds: float = 900.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.exchange = exchange
        self._factory = factory
        self._ttl = float(ttl_seconds)
        self._clock = clock or time.monotonic
        self._sessions: Dict[str, ExchangeSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._logger = get_logger(__name__, exchange=exchange)

    def get(self, account_id: str) -> ExchangeSession | None:
        return self._sessions.get(account_id)

    def __len__(self) -> int:
        return len(self._sessions)

    async def refresh_session(self, account: Account) -> ExchangeSession:
        account_id = account.account_id
        lock = self._locks.setdefault(account_id, asyncio.Lock())
        async with lock:
            now = self._clock()
            current = self._sessions.get(account_id)
            if current is not None and current.age(now) < self._ttl:
                return current
            try:
                handle = self._factory(account)
            except Exception as exc:
                self._logger.error("Failed to open exchange session", account=account_id, error=str(exc))
                raise ExchangeSessionError(
                    "Failed to open exchange session",
                    exchange=self.exchange,
                    account_id=account_id,
                    cause=exc,
                ) from exc
            session = ExchangeSession(
                account_id=account_id, exchange=self.exchange, handle=handle, created_at=now
            )
            self._sessions[account_id] = session
            self._logger.info(
                "Exchange session refreshed" if current is not None else "Exchange session opened",
                account=account_id,
            )
        if current is not None:
            await current.handle.aclose()
        return session

    async def invalidate(self, account_id: str) -> None:
        """Drop the cached session so the next access builds a new one."""

        session = self._sessions.pop(account_id, None)
        if session is not None:
            await session.handle.aclose()

    async def aclose(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await session.handle.aclose()


__all__ = ["ExchangeSession", "HandleFactory", "SessionRegistry"]
