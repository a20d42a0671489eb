from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Balance:
    """Spot holding of a single coin.

    ``free`` is the unlocked quantity available for trading; ``total`` also
    includes amounts reserved by open orders.
    """

    coin: str
    free: float
    total: float

    def __post_init__(self) -> None:
        if not self.coin:
            raise ValueError("coin must be provided")
        if self.free < 0:
            raise ValueError("free balance cannot be negative")
        if self.total < self.free:
            raise ValueError("total balance cannot be lower than free balance")

    @property
    def locked(self) -> float:
        return self.total - self.free

    def to_dict(self) -> dict[str, Any]:
        return {"coin": self.coin, "free": self.free, "total": self.total}


__all__ = ["Balance"]
