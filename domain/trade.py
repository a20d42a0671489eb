"""Trade intents and the size specifications they carry."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .order import OrderSide


class InvalidSizeSpecError(ValueError):
    """Raised when a trade size specification cannot be interpreted."""


class SizeKind(str, Enum):
    """How a trade size specification must be interpreted."""

    UNSET = "unset"
    PERCENT = "percent"
    ABSOLUTE = "absolute"


@dataclass(slots=True, frozen=True)
class SizeSpec:
    """Parsed trade size.

    ``PERCENT`` values are expressed in percent (``50`` for ``"50%"``) and
    ``ABSOLUTE`` values are quote-currency amounts.
    """

    kind: SizeKind
    value: Decimal | None = None

    @classmethod
    def parse(cls, raw: "SizeSpec | str | float | int | Decimal | None") -> "SizeSpec":
        if isinstance(raw, SizeSpec):
            return raw
        if raw is None:
            return cls(SizeKind.UNSET)
        text = str(raw).strip()
        if not text:
            return cls(SizeKind.UNSET)
        kind = SizeKind.ABSOLUTE
        if text.endswith("%"):
            kind = SizeKind.PERCENT
            text = text[:-1].strip()
        try:
            value = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidSizeSpecError(f"unparseable trade size: {raw!r}") from exc
        if not value.is_finite() or value <= 0:
            raise InvalidSizeSpecError(f"trade size must be a positive number: {raw!r}")
        if kind is SizeKind.PERCENT and value > 100:
            raise InvalidSizeSpecError(f"percentage trade size cannot exceed 100%: {raw!r}")
        return cls(kind, value)

    @property
    def is_unset(self) -> bool:
        return self.kind is SizeKind.UNSET

    @property
    def is_percent(self) -> bool:
        return self.kind is SizeKind.PERCENT

    @property
    def is_absolute(self) -> bool:
        return self.kind is SizeKind.ABSOLUTE

    def __str__(self) -> str:
        if self.kind is SizeKind.UNSET:
            return ""
        if self.kind is SizeKind.PERCENT:
            return f"{self.value}%"
        return str(self.value)


@dataclass(slots=True, frozen=True)
class TradeIntent:
    """Request to trade ``symbol`` in ``direction``.

    Attributes:
        symbol: Canonical market symbol the trade targets.
        direction: Intended order side; ``long``/``short`` are accepted aliases.
        size: Size specification, see :class:`SizeSpec`.
        max_budget: Optional ceiling on aggregate notional exposure for the symbol.
    """

    symbol: str
    direction: OrderSide
    size: SizeSpec = SizeSpec(SizeKind.UNSET)
    max_budget: float | None = None

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must be provided")
        object.__setattr__(self, "direction", OrderSide.from_direction(self.direction))
        object.__setattr__(self, "size", SizeSpec.parse(self.size))
        if self.max_budget is not None and self.max_budget < 0:
            raise ValueError("max_budget cannot be negative")

    @property
    def side(self) -> OrderSide:
        return self.direction

    @property
    def requested_amount(self) -> float | None:
        """Quote-currency amount for absolute sizes, ``None`` otherwise."""

        if self.size.is_absolute and self.size.value is not None:
            return float(self.size.value)
        return None

    def with_size(self, size: "SizeSpec | str | float | Decimal | None") -> "TradeIntent":
        """Return a copy of the intent with a substituted size."""

        return replace(self, size=SizeSpec.parse(size))

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "direction": self.direction.value,
            "size": str(self.size),
            "max_budget": self.max_budget,
        }


__all__ = ["InvalidSizeSpecError", "SizeKind", "SizeSpec", "TradeIntent"]
