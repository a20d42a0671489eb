from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class OrderSide(str, Enum):
    """Supported trading directions."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def from_direction(cls, direction: "OrderSide | str") -> "OrderSide":
        """Map a trade direction (``buy``/``sell`` or ``long``/``short``) to a side."""

        if isinstance(direction, OrderSide):
            return direction
        value = str(direction).strip().lower()
        if value in {"buy", "long"}:
            return cls.BUY
        if value in {"sell", "short"}:
            return cls.SELL
        raise ValueError(f"unsupported trade direction: {direction!r}")

    def inverted(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


@dataclass(slots=True, frozen=True)
class OrderOptions:
    """Resolved order instruction ready to hand to an execution venue."""

    side: OrderSide
    size: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "side", OrderSide(self.side))
        if self.size < 0:
            raise ValueError("size cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        """Serialize the options into a transport-friendly representation."""

        return {"side": self.side.value, "size": self.size}


__all__ = ["OrderOptions", "OrderSide"]
