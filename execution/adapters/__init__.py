# SPDX-License-Identifier: MIT
"""Exchange handles and raw payload mappers, registered per venue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from domain import Ticker

from ..errors import UnsupportedExchangeError
from ..exposure import CoinResolver, ExchangeCapability
from ..normalization import DEFAULT_QUOTE_ASSETS
from ..readers import BalanceMapper, PositionMapper
from . import binance, binance_futures, ftx, kraken
from .base import RESTExchangeHandle, parse_float
from .binance import BinanceSpotHandle
from .binance_futures import BinanceFuturesHandle
from .ftx import FTXHandle
from .kraken import KrakenHandle

TickerParser = Callable[..., Ticker]


@dataclass(slots=True, frozen=True)
class VenueDefinition:
    """Everything the engine needs to know about one exchange."""

    identifier: str
    capability: ExchangeCapability
    handle_class: type[RESTExchangeHandle]
    balance_mapper: BalanceMapper
    position_mapper: PositionMapper
    ticker_parser: TickerParser
    quote_assets: tuple[str, ...] = DEFAULT_QUOTE_ASSETS
    coin_resolver: CoinResolver | None = None


VENUES: dict[str, VenueDefinition] = {
    venue.identifier: venue
    for venue in (
        VenueDefinition(
            identifier="binance",
            capability=ExchangeCapability.SPOT,
            handle_class=BinanceSpotHandle,
            balance_mapper=binance.parse_balances,
            position_mapper=binance.parse_positions,
            ticker_parser=binance.parse_ticker,
        ),
        VenueDefinition(
            identifier="binance-futures",
            capability=ExchangeCapability.FUTURES,
            handle_class=BinanceFuturesHandle,
            balance_mapper=binance_futures.parse_balances,
            position_mapper=binance_futures.parse_positions,
            ticker_parser=binance_futures.parse_ticker,
        ),
        VenueDefinition(
            identifier="ftx",
            capability=ExchangeCapability.COMPOSITE,
            handle_class=FTXHandle,
            balance_mapper=ftx.parse_balances,
            position_mapper=ftx.parse_positions,
            ticker_parser=ftx.parse_ticker,
        ),
        VenueDefinition(
            identifier="kraken",
            capability=ExchangeCapability.SPOT,
            handle_class=KrakenHandle,
            balance_mapper=kraken.parse_balances,
            position_mapper=kraken.parse_positions,
            ticker_parser=kraken.parse_ticker,
            quote_assets=kraken.QUOTE_ASSETS,
            coin_resolver=kraken.canonical_asset,
        ),
    )
}


def get_venue(identifier: str) -> VenueDefinition:
    """Return the venue registered under ``identifier``."""

    key = identifier.strip().lower()
    try:
        return VENUES[key]
    except KeyError:
        raise UnsupportedExchangeError(
            f"Unsupported exchange, expected one of {sorted(VENUES)}", exchange=key
        ) from None


def available_venues() -> Mapping[str, ExchangeCapability]:
    """Return the capability of every registered venue."""

    return {identifier: venue.capability for identifier, venue in VENUES.items()}


__all__ = [
    "BinanceFuturesHandle",
    "BinanceSpotHandle",
    "FTXHandle",
    "KrakenHandle",
    "RESTExchangeHandle",
    "TickerParser",
    "VENUES",
    "VenueDefinition",
    "available_venues",
    "get_venue",
    "parse_float",
]
