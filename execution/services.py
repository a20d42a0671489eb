# SPDX-License-Identifier: MIT
"""Exchange services combining exposure reads, sizing and risk checks.

One :class:`ExchangeService` serves every account model. Its
:class:`~execution.exposure.ExchangeCapability` decides, per ticker, whether
spot balances or derivative positions are the relevant exposure:

* ``SPOT``: balances only.
* ``FUTURES``: positions only.
* ``COMPOSITE``: classified per ticker with
  :func:`~execution.exposure.is_spot_ticker`.

Sizing goes through the pure functions of :mod:`execution.sizing` for every
capability.
"""

from __future__ import annotations

from typing import Iterable

import httpx

from configs.settings import BudgetFailurePolicy, ExposureSettings
from core.utils.logging import StructuredLogger, get_logger
from domain import Account, OrderOptions, OrderSide, Position, Ticker, TradeIntent
from interfaces.execution import OrderExecutor, SessionProvider

from .adapters import TickerParser, VenueDefinition, get_venue
from .errors import ExchangeError, ExchangeSessionError, TickerFetchError
from .exposure import (
    CoinResolver,
    ExchangeCapability,
    ExposureResolver,
    InstrumentKind,
    instrument_kind,
)
from .normalization import DEFAULT_QUOTE_ASSETS, SymbolPrecision
from .readers import BalanceMapper, ExchangeReader, PositionMapper
from .risk import EvaluationState, RiskController, StepOutcome, TradeEvaluation
from .sessions import SessionRegistry
from .sizing import (
    compute_close_order_size,
    compute_notional_cost,
    compute_open_order_size,
    tokens_amount,
)


def default_budget_policy(capability: ExchangeCapability, settings: ExposureSettings | None = None) -> BudgetFailurePolicy:
    """Budget-failure policy applied when none is configured explicitly."""

    if capability is ExchangeCapability.COMPOSITE:
        return settings.composite_budget_policy if settings else BudgetFailurePolicy.ALLOW
    return settings.simple_budget_policy if settings else BudgetFailurePolicy.PROPAGATE


class ExchangeService:
    """Exposure-aware order sizing and risk control for one exchange."""

    def __init__(
        self,
        exchange_id: str,
        capability: ExchangeCapability,
        sessions: SessionProvider,
        executor: OrderExecutor,
        *,
        balance_mapper: BalanceMapper,
        position_mapper: PositionMapper,
        ticker_parser: TickerParser | None = None,
        precision: SymbolPrecision | None = None,
        budget_policy: BudgetFailurePolicy | None = None,
        quote_assets: Iterable[str] = DEFAULT_QUOTE_ASSETS,
        coin_resolver: CoinResolver | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.exchange_id = exchange_id
        self.capability = ExchangeCapability(capability)
        self._logger = logger or get_logger(__name__, exchange=exchange_id)
        self._precision = precision or SymbolPrecision()
        self._reader = ExchangeReader(
            exchange_id,
            sessions,
            balance_mapper=balance_mapper,
            position_mapper=position_mapper,
        )
        self._resolver = ExposureResolver(
            self._reader, quote_assets=quote_assets, coin_resolver=coin_resolver
        )
        self._controller = RiskController(
            self._resolver,
            executor,
            budget_policy=budget_policy or default_budget_policy(self.capability),
        )
        self._sessions = sessions
        self._ticker_parser = ticker_parser

    @property
    def budget_policy(self) -> BudgetFailurePolicy:
        return self._controller.budget_policy

    @property
    def resolver(self) -> ExposureResolver:
        return self._resolver

    def instrument_kind(self, ticker: Ticker) -> InstrumentKind:
        return instrument_kind(self.capability, ticker)

    def _decimals(self, ticker: Ticker) -> int | None:
        return self._precision.decimals_for(ticker.symbol)

    # ------------------------------------------------------------------
    # Exposure accessors
    async def get_ticker_balance(self, account: Account, ticker: Ticker) -> float:
        return await self._resolver.resolve_ticker_balance(account, ticker)

    async def get_ticker_position(self, account: Account, ticker: Ticker) -> Position:
        return await self._resolver.resolve_ticker_position(account, ticker)

    async def get_ticker_position_size(self, account: Account, ticker: Ticker) -> float:
        return await self._resolver.resolve_ticker_position_size(account, ticker)

    async def get_ticker(self, account: Account, symbol: str) -> Ticker:
        """Fetch a market snapshot through the account's session.

        Raises:
            TickerFetchError: If the venue cannot be read or its payload has no
                usable reference price.
        """

        if self._ticker_parser is None:
            raise TickerFetchError("No ticker parser configured", exchange=self.exchange_id, symbol=symbol)
        try:
            session = await self._sessions.refresh_session(account)
            payload = await session.handle.fetch_ticker(symbol)
            ticker = self._ticker_parser(payload, symbol)
        except (ExchangeError, TypeError, ValueError) as exc:
            self._logger.error("Failed to read ticker", account=account.account_id, symbol=symbol)
            raise TickerFetchError(
                "Failed to read ticker",
                exchange=self.exchange_id,
                account_id=account.account_id,
                symbol=symbol,
                cause=exc,
            ) from exc
        self._logger.debug(
            "Ticker read", account=account.account_id, symbol=symbol, reference_price=ticker.reference_price
        )
        return ticker

    async def check_credentials(self, account: Account) -> bool:
        """Verify the account can authenticate by reading its balances."""

        try:
            session = await self._sessions.refresh_session(account)
            await self._reader.fetch_balances(account, session.handle)
        except ExchangeError as exc:
            self._logger.error("Exchange authentication failed", account=account.account_id)
            raise ExchangeSessionError(
                "Exchange authentication failed",
                exchange=self.exchange_id,
                account_id=account.account_id,
                cause=exc,
            ) from exc
        self._logger.debug("Exchange authentication succeeded", account=account.account_id)
        return True

    # ------------------------------------------------------------------
    # Sizing
    def get_order_cost(self, ticker: Ticker, size: float) -> float:
        """Quote-currency cost of ``size`` tokens at the ticker's reference price."""

        return compute_notional_cost(size, ticker.reference_price)

    async def get_close_order_options(self, account: Account, ticker: Ticker, trade: TradeIntent) -> OrderOptions:
        """Order that closes all or part of the current exposure on ``ticker``.

        Raises:
            TickerFetchError: Spot exposure is missing or unreadable.
            NoOpenPositionError: No derivative position is open.
            PositionsFetchError: Positions cannot be read.
        """

        if self.instrument_kind(ticker) is InstrumentKind.SPOT:
            balance = await self.get_ticker_balance(account, ticker)
            return OrderOptions(
                side=OrderSide.SELL,
                size=compute_close_order_size(trade.size, ticker.reference_price, balance, self._decimals(ticker)),
            )
        position = await self.get_ticker_position(account, ticker)
        return OrderOptions(
            side=position.closing_side,
            size=compute_close_order_size(trade.size, ticker.reference_price, position.size, self._decimals(ticker)),
        )

    async def get_open_order_options(
        self,
        account: Account,
        ticker: Ticker,
        trade: TradeIntent,
        *,
        counter_exposure: float | None = None,
    ) -> OrderOptions:
        """Order that opens new exposure in the trade's direction.

        Absolute sizes convert the quote amount at the reference price without
        reading exposure. Percentages apply to the current exposure and an unset
        size takes the full magnitude of the opposite exposure, which callers
        may pass as ``counter_exposure`` when they already closed it.
        """

        decimals = self._decimals(ticker)
        if trade.size.is_absolute:
            assert trade.size.value is not None
            return OrderOptions(
                side=trade.side,
                size=tokens_amount(trade.size.value, ticker.reference_price, decimals),
            )
        exposure, counter = await self._current_exposure(account, ticker, trade)
        if counter_exposure is not None:
            counter = counter_exposure
        return OrderOptions(
            side=trade.side,
            size=compute_open_order_size(trade.size, ticker.reference_price, exposure, counter, decimals),
        )

    async def _current_exposure(self, account: Account, ticker: Ticker, trade: TradeIntent) -> tuple[float, float]:
        """Return ``(exposure, counter_exposure)`` magnitudes for open-order sizing."""

        if self.instrument_kind(ticker) is InstrumentKind.SPOT:
            balance = await self._resolver.lookup_balance(account, ticker)
            if balance.is_failed:
                assert balance.error is not None
                raise balance.error
            free = balance.value if balance.is_found and balance.value is not None else 0.0
            return free, free if trade.side is OrderSide.SELL else 0.0
        lookup = await self._resolver.lookup_position(account, ticker)
        if lookup.is_failed:
            assert lookup.error is not None
            raise lookup.error
        position = lookup.value
        if position is None:
            return 0.0, 0.0
        return position.size, position.size if position.opposes(trade.side) else 0.0

    # ------------------------------------------------------------------
    # Risk controls
    async def handle_reverse_order(self, account: Account, ticker: Ticker, trade: TradeIntent) -> None:
        """Close an opposite position before a new trade; never raises on missing exposure."""

        await self._controller.check_reverse(account, ticker, trade, self.instrument_kind(ticker))

    async def handle_overflow(self, account: Account, ticker: Ticker, trade: TradeIntent) -> bool:
        """Close the full exposure when the trade exceeds it.

        Returns ``True`` when a closing order was issued, in which case the
        caller must not open a new order for this trade.
        """

        report = await self._controller.check_overflow(account, ticker, trade, self.instrument_kind(ticker))
        return report.handled

    async def handle_max_budget(self, account: Account, ticker: Ticker, trade: TradeIntent) -> None:
        """Raise :class:`~execution.errors.OpenPositionError` when the trade breaches its budget."""

        report = await self._controller.check_budget(account, ticker, trade, self.instrument_kind(ticker))
        if report.outcome is StepOutcome.WOULD_REJECT:
            assert report.error is not None
            raise report.error

    async def evaluate_trade(self, account: Account, ticker: Ticker, trade: TradeIntent) -> TradeEvaluation:
        """Run reverse, overflow and budget checks, then size the order to open.

        The returned evaluation carries no order when overflow handling already
        traded or when the budget check rejected the trade.
        """

        evaluation = TradeEvaluation(trade=trade)
        kind = self.instrument_kind(ticker)
        with self._logger.operation(
            "evaluate_trade",
            account=account.account_id,
            symbol=ticker.symbol,
            direction=trade.direction.value,
            instrument=kind.value,
        ) as op:
            reverse = await self._controller.check_reverse(account, ticker, trade, kind)
            evaluation.advance(EvaluationState.REVERSE_CHECK, reverse)

            overflow = await self._controller.check_overflow(account, ticker, trade, kind)
            evaluation.advance(EvaluationState.OVERFLOW_CHECK, overflow)
            if overflow.handled:
                evaluation.resolve(None)
            else:
                budget = await self._controller.check_budget(account, ticker, trade, kind)
                evaluation.advance(EvaluationState.BUDGET_CHECK, budget)
                if budget.outcome is StepOutcome.WOULD_REJECT:
                    assert budget.error is not None
                    evaluation.reject(budget.error)
                else:
                    counter = reverse.position.size if reverse.handled and reverse.position else None
                    evaluation.resolve(
                        await self.get_open_order_options(account, ticker, trade, counter_exposure=counter)
                    )
            op["state"] = evaluation.state.value
            if evaluation.order_options is not None:
                op["order"] = evaluation.order_options.to_dict()
        return evaluation


def build_exchange_service(
    exchange_id: str,
    executor: OrderExecutor,
    *,
    settings: ExposureSettings | None = None,
    sessions: SessionProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ExchangeService:
    """Assemble the service, session registry and handles for a registered venue.

    Raises:
        UnsupportedExchangeError: If ``exchange_id`` is not registered.
    """

    settings = settings or ExposureSettings()
    venue: VenueDefinition = get_venue(exchange_id)
    if sessions is None:
        timeout = httpx.Timeout(settings.http_timeout_seconds, read=settings.http_read_timeout_seconds)

        def _open_handle(account: Account):
            if account.credentials is None:
                raise ValueError(f"account {account.account_id} has no credentials")
            return venue.handle_class(
                credentials=account.credentials,
                sandbox=settings.sandbox,
                http_client=http_client,
                timeout=timeout,
            )

        sessions = SessionRegistry(venue.identifier, _open_handle, ttl_seconds=settings.session_ttl_seconds)
    return ExchangeService(
        venue.identifier,
        venue.capability,
        sessions,
        executor,
        balance_mapper=venue.balance_mapper,
        position_mapper=venue.position_mapper,
        ticker_parser=venue.ticker_parser,
        quote_assets=venue.quote_assets,
        coin_resolver=venue.coin_resolver,
        precision=SymbolPrecision(settings.symbol_precisions, default=settings.default_lot_precision),
        budget_policy=default_budget_policy(venue.capability, settings),
    )


__all__ = ["ExchangeService", "build_exchange_service", "default_budget_policy"]
