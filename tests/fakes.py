# SPDX-License-Identifier: MIT
"""In-memory collaborators shared by the exposure engine tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping

from domain import Account, Balance, Position, Ticker, TradeIntent


class FakeHandle:
    """Exchange handle serving canned payloads in the canonical entity shape.

    ``balances`` and ``positions`` are lists of plain dicts matching
    :class:`~domain.Balance` and :class:`~domain.Position`; setting
    ``balance_error``/``position_error`` makes the matching fetch raise.
    """

    def __init__(
        self,
        balances: Iterable[Mapping[str, Any]] = (),
        positions: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        self.balances = [dict(entry) for entry in balances]
        self.positions = [dict(entry) for entry in positions]
        self.balance_error: Exception | None = None
        self.position_error: Exception | None = None
        self.balance_calls = 0
        self.position_calls = 0
        self.closed = False

    async def fetch_balance(self) -> list[dict[str, Any]]:
        self.balance_calls += 1
        if self.balance_error is not None:
            raise self.balance_error
        return list(self.balances)

    async def fetch_private_account_info(self) -> list[dict[str, Any]]:
        self.position_calls += 1
        if self.position_error is not None:
            raise self.position_error
        return list(self.positions)

    async def fetch_ticker(self, symbol: str) -> Mapping[str, Any]:
        return {"symbol": symbol}

    async def aclose(self) -> None:
        self.closed = True


def map_balances(payload: list[Mapping[str, Any]]) -> list[Balance]:
    return [Balance(**entry) for entry in payload]


def map_positions(payload: list[Mapping[str, Any]]) -> list[Position]:
    return [Position(**entry) for entry in payload]


@dataclass
class FakeSession:
    account_id: str
    handle: FakeHandle


class FakeSessions:
    """Session provider handing out the same handle for every account."""

    def __init__(self, handle: FakeHandle) -> None:
        self.handle = handle
        self.refreshes = 0
        self.error: Exception | None = None

    async def refresh_session(self, account: Account) -> FakeSession:
        self.refreshes += 1
        if self.error is not None:
            raise self.error
        return FakeSession(account_id=account.account_id, handle=self.handle)


@dataclass
class RecordingExecutor:
    """Order executor recording close requests, optionally applying them to a handle."""

    handle: FakeHandle | None = None
    fail_with: Exception | None = None
    calls: List[tuple[Account, TradeIntent, Ticker]] = field(default_factory=list)

    async def close_order(self, account: Account, trade: TradeIntent, ticker: Ticker) -> None:
        self.calls.append((account, trade, ticker))
        if self.fail_with is not None:
            raise self.fail_with
        if self.handle is not None:
            # a filled close leaves no exposure on the instrument
            self.handle.positions.clear()


__all__ = [
    "FakeHandle",
    "FakeSession",
    "FakeSessions",
    "RecordingExecutor",
    "map_balances",
    "map_positions",
]
