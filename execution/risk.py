# SPDX-License-Identifier: MIT
"""Exposure-aware risk controls applied around a new trade.

A trade evaluation walks ``START -> REVERSE_CHECK -> OVERFLOW_CHECK ->
BUDGET_CHECK -> SIZE_RESOLVED`` and may end in ``REJECTED`` at the budget
check. Each step re-reads exposure because the previous one may have closed
it, and each step reports a :class:`StepOutcome` instead of raising:

* ``NOT_APPLICABLE``: nothing to do (no exposure, same side, no budget...).
* ``HANDLED``: the step acted (closed exposure) or the budget check passed.
* ``WOULD_REJECT``: the trade breaches the symbol's budget.

Reverse and overflow steps treat unreadable exposure as absent. The budget
step applies the configured :class:`~configs.settings.BudgetFailurePolicy`:
single-capability exchanges propagate the read failure while composite
exchanges allow the trade by default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from configs.settings import BudgetFailurePolicy
from core.utils.logging import StructuredLogger, get_logger
from domain import Account, OrderOptions, OrderSide, Position, Ticker, TradeIntent
from interfaces.execution import OrderExecutor

from .errors import OpenPositionError
from .exposure import ExposureLookup, ExposureResolver, InstrumentKind
from .normalization import to_decimal
from .sizing import compute_notional_cost


class StepOutcome(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    HANDLED = "handled"
    WOULD_REJECT = "would_reject"


class EvaluationState(str, Enum):
    START = "start"
    REVERSE_CHECK = "reverse_check"
    OVERFLOW_CHECK = "overflow_check"
    BUDGET_CHECK = "budget_check"
    SIZE_RESOLVED = "size_resolved"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class StepReport:
    """Result of one controller step.

    Attributes:
        outcome: What the step concluded.
        position: Position the step acted on, when it closed one.
        current_notional: Exposure notional observed by the budget step.
        error: Budget violation when ``outcome`` is ``WOULD_REJECT``.
    """

    outcome: StepOutcome
    position: Position | None = None
    current_notional: float | None = None
    error: OpenPositionError | None = None

    @property
    def handled(self) -> bool:
        return self.outcome is StepOutcome.HANDLED


@dataclass(slots=True)
class TradeEvaluation:
    """Trail of a full evaluation and the order it resolved to."""

    trade: TradeIntent
    state: EvaluationState = EvaluationState.START
    outcomes: dict[EvaluationState, StepOutcome] = field(default_factory=dict)
    order_options: OrderOptions | None = None
    rejection: OpenPositionError | None = None

    def advance(self, state: EvaluationState, report: StepReport) -> None:
        self.state = state
        self.outcomes[state] = report.outcome

    def resolve(self, options: OrderOptions | None) -> None:
        self.state = EvaluationState.SIZE_RESOLVED
        self.order_options = options

    def reject(self, error: OpenPositionError) -> None:
        self.state = EvaluationState.REJECTED
        self.rejection = error

    @property
    def reversed(self) -> bool:
        return self.outcomes.get(EvaluationState.REVERSE_CHECK) is StepOutcome.HANDLED

    @property
    def overflow_handled(self) -> bool:
        return self.outcomes.get(EvaluationState.OVERFLOW_CHECK) is StepOutcome.HANDLED

    @property
    def rejected(self) -> bool:
        return self.state is EvaluationState.REJECTED


class RiskController:
    """Reverse, overflow and budget checks for one exchange."""

    def __init__(
        self,
        resolver: ExposureResolver,
        executor: OrderExecutor,
        *,
        budget_policy: BudgetFailurePolicy = BudgetFailurePolicy.PROPAGATE,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._resolver = resolver
        self._executor = executor
        self.budget_policy = budget_policy
        self._logger = logger or get_logger(__name__, exchange=resolver.exchange)

    @property
    def exchange(self) -> str:
        return self._resolver.exchange

    async def _close(self, account: Account, trade: TradeIntent, ticker: Ticker, reason: str) -> bool:
        try:
            await self._executor.close_order(account, trade, ticker)
        except Exception:
            self._logger.exception(
                "Closing order failed", reason=reason, account=account.account_id, symbol=ticker.symbol
            )
            return False
        return True

    def _log_unreadable(self, step: str, account: Account, ticker: Ticker, lookup: ExposureLookup) -> None:
        self._logger.warning(
            "Exposure unreadable, treating as absent",
            step=step,
            account=account.account_id,
            symbol=ticker.symbol,
            error=str(lookup.error),
        )

    # ------------------------------------------------------------------
    # Reverse
    async def check_reverse(
        self, account: Account, ticker: Ticker, trade: TradeIntent, kind: InstrumentKind
    ) -> StepReport:
        """Close an existing position whose side opposes ``trade``."""

        if kind is InstrumentKind.SPOT:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        lookup = await self._resolver.lookup_position(account, ticker)
        if lookup.is_failed:
            self._log_unreadable("reverse", account, ticker, lookup)
        if not lookup.is_found:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        position = lookup.value
        assert position is not None
        if not position.opposes(trade.direction):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        self._logger.info(
            "Reversing position",
            account=account.account_id,
            symbol=ticker.symbol,
            position=position.to_dict(),
            direction=trade.direction.value,
        )
        if not await self._close(account, trade.with_size(None), ticker, "reverse"):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        return StepReport(StepOutcome.HANDLED, position=position)

    # ------------------------------------------------------------------
    # Overflow
    async def check_overflow(
        self, account: Account, ticker: Ticker, trade: TradeIntent, kind: InstrumentKind
    ) -> StepReport:
        """Close the full exposure when ``trade`` exceeds what is available to close."""

        requested = trade.requested_amount
        if requested is None:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        if kind is InstrumentKind.SPOT:
            return await self._check_spot_overflow(account, ticker, trade, requested)
        return await self._check_derivative_overflow(account, ticker, trade, requested)

    async def _check_spot_overflow(
        self, account: Account, ticker: Ticker, trade: TradeIntent, requested: float
    ) -> StepReport:
        if trade.direction is not OrderSide.SELL:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        lookup = await self._resolver.lookup_balance(account, ticker)
        if lookup.is_failed:
            self._log_unreadable("overflow", account, ticker, lookup)
        if not lookup.is_found or not lookup.value:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        available = compute_notional_cost(lookup.value, ticker.reference_price)
        if to_decimal(available) >= to_decimal(requested):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        self._logger.info(
            "Trade overflows spot balance, closing full balance",
            account=account.account_id,
            symbol=ticker.symbol,
            requested=requested,
            available=available,
        )
        if not await self._close(account, trade.with_size(to_decimal(available)), ticker, "overflow"):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        return StepReport(StepOutcome.HANDLED)

    async def _check_derivative_overflow(
        self, account: Account, ticker: Ticker, trade: TradeIntent, requested: float
    ) -> StepReport:
        lookup = await self._resolver.lookup_position(account, ticker)
        if lookup.is_failed:
            self._log_unreadable("overflow", account, ticker, lookup)
        if not lookup.is_found:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        position = lookup.value
        assert position is not None
        if not position.opposes(trade.direction):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        if to_decimal(requested) <= to_decimal(position.notional_cost):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        self._logger.info(
            "Trade overflows open position, closing full position",
            account=account.account_id,
            symbol=ticker.symbol,
            requested=requested,
            position=position.to_dict(),
        )
        if not await self._close(account, trade.with_size(None), ticker, "overflow"):
            return StepReport(StepOutcome.NOT_APPLICABLE)
        return StepReport(StepOutcome.HANDLED, position=position)

    # ------------------------------------------------------------------
    # Budget
    async def _current_notional(
        self, account: Account, ticker: Ticker, kind: InstrumentKind
    ) -> ExposureLookup[float]:
        if kind is InstrumentKind.SPOT:
            balance = await self._resolver.lookup_balance(account, ticker)
            if balance.is_found and balance.value is not None:
                return ExposureLookup.found(compute_notional_cost(balance.value, ticker.reference_price))
            return balance
        position = await self._resolver.lookup_position(account, ticker)
        if position.is_found and position.value is not None:
            return ExposureLookup.found(position.value.cost)
        return ExposureLookup(position.status, error=position.error)

    async def check_budget(
        self, account: Account, ticker: Ticker, trade: TradeIntent, kind: InstrumentKind
    ) -> StepReport:
        """Compare current exposure plus the requested amount against ``trade.max_budget``.

        Raises:
            ExchangeError: When exposure cannot be read and the budget policy
                is ``PROPAGATE``.
        """

        requested = trade.requested_amount
        if trade.max_budget is None or requested is None:
            return StepReport(StepOutcome.NOT_APPLICABLE)
        lookup = await self._current_notional(account, ticker, kind)
        if lookup.is_failed:
            assert lookup.error is not None
            if self.budget_policy is BudgetFailurePolicy.PROPAGATE:
                self._logger.error(
                    "Budget check failed to read exposure",
                    account=account.account_id,
                    symbol=ticker.symbol,
                    error=str(lookup.error),
                )
                raise lookup.error
            self._logger.warning(
                "Budget check skipped, exposure unreadable",
                account=account.account_id,
                symbol=ticker.symbol,
                error=str(lookup.error),
            )
            return StepReport(StepOutcome.NOT_APPLICABLE)
        current = lookup.value if lookup.is_found and lookup.value is not None else 0.0
        total = abs(to_decimal(current)) + to_decimal(requested)
        if total > Decimal(str(trade.max_budget)):
            error = OpenPositionError(
                f"Opening {trade.direction.value} trade would exceed max budget {trade.max_budget}"
                f" (current {abs(current)}, requested {requested})",
                exchange=self.exchange,
                account_id=account.account_id,
                symbol=trade.symbol,
            )
            self._logger.error(
                "Max budget exceeded",
                account=account.account_id,
                symbol=trade.symbol,
                side=trade.direction.value,
                max_budget=trade.max_budget,
                current=abs(current),
                requested=requested,
            )
            return StepReport(StepOutcome.WOULD_REJECT, current_notional=current, error=error)
        return StepReport(StepOutcome.HANDLED, current_notional=current)


__all__ = [
    "EvaluationState",
    "RiskController",
    "StepOutcome",
    "StepReport",
    "TradeEvaluation",
]
