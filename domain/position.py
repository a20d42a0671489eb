"""Domain snapshot of a derivative position."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .order import OrderSide


class PositionSide(str, Enum):
    """Direction of an open derivative position."""

    LONG = "long"
    SHORT = "short"

    @classmethod
    def from_venue(cls, value: "PositionSide | str") -> "PositionSide":
        """Accept ``long``/``short`` as well as the ``buy``/``sell`` spelling some venues use."""

        if isinstance(value, PositionSide):
            return value
        normalized = str(value).strip().lower()
        if normalized in {"long", "buy"}:
            return cls.LONG
        if normalized in {"short", "sell"}:
            return cls.SHORT
        raise ValueError(f"unsupported position side: {value!r}")


@dataclass(slots=True, frozen=True)
class Position:
    """Open exposure on a single derivative instrument.

    ``size`` is the unsigned contract quantity and ``side`` carries the
    direction. ``cost`` is the notional cost reported by the venue and may be
    negative for shorts on some exchanges; callers compare against its
    absolute value.
    """

    instrument_symbol: str
    side: PositionSide
    size: float
    cost: float = 0.0

    def __post_init__(self) -> None:
        if not self.instrument_symbol:
            raise ValueError("instrument_symbol must be provided")
        object.__setattr__(self, "side", PositionSide.from_venue(self.side))
        if self.size < 0:
            raise ValueError("size must be an unsigned magnitude")

    @property
    def notional_cost(self) -> float:
        return abs(self.cost)

    @property
    def closing_side(self) -> OrderSide:
        """Order side that reduces this position."""

        return OrderSide.SELL if self.side is PositionSide.LONG else OrderSide.BUY

    def opposes(self, direction: OrderSide | str) -> bool:
        """Return whether a trade in ``direction`` runs against this position."""

        return OrderSide.from_direction(direction) is self.closing_side

    def to_dict(self) -> dict[str, Any]:
        """Serialize into primitives for upper layers."""

        return {
            "instrument_symbol": self.instrument_symbol,
            "side": self.side.value,
            "size": self.size,
            "cost": self.cost,
        }


__all__ = ["Position", "PositionSide"]
