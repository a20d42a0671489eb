# SPDX-License-Identifier: MIT
"""Resolve the current exposure of an account on a ticker.

Spot exposure is the free balance of the ticker's base coin; derivative
exposure is the open position on the ticker's instrument. Composite venues
hold both, so every ticker is first classified with :func:`is_spot_ticker`.

Two access styles are offered. The ``resolve_*`` methods raise when exposure
is missing, which suits callers that cannot proceed without it. The
``lookup_*`` methods return an :class:`ExposureLookup` that tells a missing
exposure (``ABSENT``) apart from one that could not be read (``FAILED``), so
the risk controller can branch on the outcome instead of catching errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Iterable, TypeVar

from core.utils.logging import StructuredLogger, get_logger
from domain import Account, Balance, Position, Ticker

from .errors import BalancesFetchError, ExchangeError, NoOpenPositionError, TickerFetchError
from .normalization import DEFAULT_QUOTE_ASSETS, canonical_symbol, spot_coin
from .readers import ExchangeReader

T = TypeVar("T")
CoinResolver = Callable[[str], str]

_DERIVATIVE_MARKET_TYPES = frozenset(
    {"future", "futures", "perpetual", "perp", "swap", "option", "move", "prediction"}
)


class ExchangeCapability(str, Enum):
    """Account model exposed by an exchange."""

    SPOT = "spot"
    FUTURES = "futures"
    COMPOSITE = "composite"


class InstrumentKind(str, Enum):
    """Kind of exposure a ticker refers to."""

    SPOT = "spot"
    DERIVATIVE = "derivative"


def is_spot_ticker(ticker: Ticker) -> bool:
    """Classify a ticker from its raw venue payload.

    A market is a derivative when its payload declares a derivative ``type``,
    names an ``underlying`` or carries a truthy ``contract`` flag. Anything
    else is treated as spot.
    """

    info = ticker.raw_info
    market_type = str(info.get("type") or "").strip().lower()
    if market_type == "spot":
        return True
    if market_type in _DERIVATIVE_MARKET_TYPES:
        return False
    if info.get("underlying"):
        return False
    return not bool(info.get("contract"))


def instrument_kind(capability: ExchangeCapability, ticker: Ticker) -> InstrumentKind:
    if capability is ExchangeCapability.SPOT:
        return InstrumentKind.SPOT
    if capability is ExchangeCapability.FUTURES:
        return InstrumentKind.DERIVATIVE
    return InstrumentKind.SPOT if is_spot_ticker(ticker) else InstrumentKind.DERIVATIVE


class LookupStatus(str, Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class ExposureLookup(Generic[T]):
    """Outcome of an exposure lookup that never raises."""

    status: LookupStatus
    value: T | None = None
    error: ExchangeError | None = None

    @classmethod
    def found(cls, value: T) -> "ExposureLookup[T]":
        return cls(LookupStatus.FOUND, value=value)

    @classmethod
    def absent(cls) -> "ExposureLookup[T]":
        return cls(LookupStatus.ABSENT)

    @classmethod
    def failed(cls, error: ExchangeError) -> "ExposureLookup[T]":
        return cls(LookupStatus.FAILED, error=error)

    @property
    def is_found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @property
    def is_absent(self) -> bool:
        return self.status is LookupStatus.ABSENT

    @property
    def is_failed(self) -> bool:
        return self.status is LookupStatus.FAILED


class ExposureResolver:
    """Resolve balances and positions matching a ticker."""

    def __init__(
        self,
        reader: ExchangeReader,
        *,
        quote_assets: Iterable[str] = DEFAULT_QUOTE_ASSETS,
        coin_resolver: CoinResolver | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._reader = reader
        self._quote_assets = tuple(quote_assets)
        self._coin_resolver = coin_resolver
        self._logger = logger or get_logger(__name__, exchange=reader.exchange)

    @property
    def exchange(self) -> str:
        return self._reader.exchange

    @property
    def reader(self) -> ExchangeReader:
        return self._reader

    def spot_coin(self, ticker: Ticker) -> str:
        """Coin whose balance is the spot exposure of ``ticker``.

        A base currency named in the market payload wins over parsing the
        symbol. Venue coin codes go through the venue's ``coin_resolver``.
        """

        base = ticker.raw_info.get("baseCurrency") or ticker.raw_info.get("base")
        coin = str(base).strip().upper() if base else spot_coin(ticker.symbol, self._quote_assets)
        if self._coin_resolver is not None:
            coin = self._coin_resolver(coin)
        return coin

    async def _find_balance(self, account: Account, ticker: Ticker) -> Balance | None:
        coin = self.spot_coin(ticker)
        matches = [b for b in await self._reader.fetch_balances(account) if b.coin.upper() == coin]
        return matches[-1] if matches else None

    async def _find_position(self, account: Account, ticker: Ticker) -> Position | None:
        instrument = canonical_symbol(ticker.symbol)
        matches = [
            p
            for p in await self._reader.fetch_positions(account)
            if canonical_symbol(p.instrument_symbol) == instrument
        ]
        if len(matches) > 1:
            self._logger.warning(
                "Multiple open positions for one instrument, using the last one",
                account=account.account_id,
                symbol=ticker.symbol,
                count=len(matches),
            )
        return matches[-1] if matches else None

    # ------------------------------------------------------------------
    # Raising accessors
    async def resolve_ticker_balance(self, account: Account, ticker: Ticker) -> float:
        """Return the free balance of the ticker's base coin.

        Raises:
            TickerFetchError: If balances cannot be read or no balance of the
                coin exists.
        """

        coin = self.spot_coin(ticker)
        try:
            balance = await self._find_balance(account, ticker)
        except BalancesFetchError as exc:
            self._logger.error("Failed to read ticker balance", account=account.account_id, symbol=coin)
            raise TickerFetchError(
                "Failed to read ticker balance",
                exchange=self.exchange,
                account_id=account.account_id,
                symbol=coin,
                cause=exc,
            ) from exc
        if balance is None:
            self._logger.error("No balance for ticker", account=account.account_id, symbol=coin)
            raise TickerFetchError(
                "No balance for ticker",
                exchange=self.exchange,
                account_id=account.account_id,
                symbol=coin,
            )
        self._logger.debug(
            "Ticker balance read", account=account.account_id, symbol=coin, balance=balance.to_dict()
        )
        return balance.free

    async def resolve_ticker_position(self, account: Account, ticker: Ticker) -> Position:
        """Return the open position on the ticker's instrument.

        Raises:
            PositionsFetchError: If positions cannot be read.
            NoOpenPositionError: If no open position exists.
        """

        position = await self._find_position(account, ticker)
        if position is None:
            self._logger.error("No open position", account=account.account_id, symbol=ticker.symbol)
            raise NoOpenPositionError(
                "No open position",
                exchange=self.exchange,
                account_id=account.account_id,
                symbol=ticker.symbol,
            )
        self._logger.debug(
            "Position read", account=account.account_id, symbol=ticker.symbol, position=position.to_dict()
        )
        return position

    async def resolve_ticker_position_size(self, account: Account, ticker: Ticker) -> float:
        """Return the notional cost of the open position."""

        position = await self.resolve_ticker_position(account, ticker)
        return position.cost

    # ------------------------------------------------------------------
    # Non-raising lookups
    async def lookup_balance(self, account: Account, ticker: Ticker) -> ExposureLookup[float]:
        try:
            balance = await self._find_balance(account, ticker)
        except ExchangeError as exc:
            return ExposureLookup.failed(exc)
        if balance is None:
            return ExposureLookup.absent()
        return ExposureLookup.found(balance.free)

    async def lookup_position(self, account: Account, ticker: Ticker) -> ExposureLookup[Position]:
        try:
            position = await self._find_position(account, ticker)
        except ExchangeError as exc:
            return ExposureLookup.failed(exc)
        if position is None:
            return ExposureLookup.absent()
        return ExposureLookup.found(position)


__all__ = [
    "CoinResolver",
    "ExchangeCapability",
    "ExposureLookup",
    "ExposureResolver",
    "InstrumentKind",
    "LookupStatus",
    "instrument_kind",
    "is_spot_ticker",
]
