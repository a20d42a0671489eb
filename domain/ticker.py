from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(slots=True, frozen=True)
class Ticker:
    """Immutable market snapshot passed into every exposure operation.

    ``raw_info`` keeps the venue payload untouched so composite exchanges can
    tell spot markets from derivative markets without another request.
    """

    symbol: str
    reference_price: float
    raw_info: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must be provided")
        if self.reference_price <= 0:
            raise ValueError("reference_price must be positive")
        object.__setattr__(self, "raw_info", MappingProxyType(dict(self.raw_info)))


__all__ = ["Ticker"]
