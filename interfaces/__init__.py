"""Interface definitions for the exposure engine's collaborators."""

from interfaces.execution import (
    ExchangeHandle,
    ExchangeSessionLike,
    OrderExecutor,
    SessionProvider,
)

__all__ = [
    "ExchangeHandle",
    "ExchangeSessionLike",
    "OrderExecutor",
    "SessionProvider",
]
