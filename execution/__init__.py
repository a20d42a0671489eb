"""Exposure-aware order sizing, exchange readers and risk controls."""

from .errors import (
    BalancesFetchError,
    ExchangeError,
    ExchangeSessionError,
    ExchangeTransportError,
    InvalidSizeSpecError,
    NoOpenPositionError,
    OpenPositionError,
    PositionsFetchError,
    RiskError,
    TickerFetchError,
    UnsupportedExchangeError,
)
from .exposure import (
    ExchangeCapability,
    ExposureLookup,
    ExposureResolver,
    InstrumentKind,
    LookupStatus,
    instrument_kind,
    is_spot_ticker,
)
from .normalization import SymbolPrecision, canonical_symbol, spot_coin
from .readers import ExchangeReader
from .risk import EvaluationState, RiskController, StepOutcome, StepReport, TradeEvaluation
from .services import ExchangeService, build_exchange_service, default_budget_policy
from .sessions import ExchangeSession, SessionRegistry
from .sizing import (
    compute_close_order_size,
    compute_notional_cost,
    compute_open_order_size,
    compute_order_size,
    relative_size,
    tokens_amount,
)

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
    "ExchangeCapability",
    "ExposureLookup",
    "ExposureResolver",
    "InstrumentKind",
    "LookupStatus",
    "instrument_kind",
    "is_spot_ticker",
    "SymbolPrecision",
    "canonical_symbol",
    "spot_coin",
    "ExchangeReader",
    "EvaluationState",
    "RiskController",
    "StepOutcome",
    "StepReport",
    "TradeEvaluation",
    "ExchangeService",
    "build_exchange_service",
    "default_budget_policy",
    "ExchangeSession",
    "SessionRegistry",
    "compute_close_order_size",
    "compute_notional_cost",
    "compute_open_order_size",
    "compute_order_size",
    "relative_size",
    "tokens_amount",
]
