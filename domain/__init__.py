"""Domain layer containing accounts, market snapshots and exposure entities."""

from .account import Account, ExchangeCredentials
from .balance import Balance
from .order import OrderOptions, OrderSide
from .position import Position, PositionSide
from .ticker import Ticker
from .trade import InvalidSizeSpecError, SizeKind, SizeSpec, TradeIntent

__all__ = [
    "Account",
    "Balance",
    "ExchangeCredentials",
    "InvalidSizeSpecError",
    "OrderOptions",
    "OrderSide",
    "Position",
    "PositionSide",
    "SizeKind",
    "SizeSpec",
    "Ticker",
    "TradeIntent",
]
