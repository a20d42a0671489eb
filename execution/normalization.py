# SPDX-License-Identifier: MIT
"""Symbol canonicalisation and lot-precision helpers shared by all venues."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Dict, Iterable, Mapping

DEFAULT_QUOTE_ASSETS: tuple[str, ...] = (
    "USDT",
    "USDC",
    "BUSD",
    "FDUSD",
    "TUSD",
    "USD",
    "EUR",
    "GBP",
    "BTC",
    "ETH",
    "BNB",
)

_SEPARATORS = ("/", "-", "_")
_MIN_BASE_LENGTH = 3


def canonical_symbol(symbol: str) -> str:
    """Return ``symbol`` without separators or settlement suffix, upper-cased."""

    base = symbol.split(":", 1)[0]
    for separator in _SEPARATORS:
        base = base.replace(separator, "")
    return base.strip().upper()


def spot_coin(symbol: str, quote_assets: Iterable[str] = DEFAULT_QUOTE_ASSETS) -> str:
    """Return the base coin code of a spot market symbol.

    ``BTC/USD``, ``BTC-USD`` and ``BTCUSDT`` all resolve to ``BTC``. Quotes
    nest (``TUSD`` ends in ``USD``), so a longer quote is only stripped when
    it leaves a base of at least three letters: ``BTCTUSD`` is ``BTC`` while
    ``DOTUSD`` is ``DOT``.
    """

    head = symbol.split(":", 1)[0].strip().upper()
    for separator in _SEPARATORS:
        if separator in head:
            return head.split(separator, 1)[0]
    matches = [
        quote
        for quote in sorted(quote_assets, key=len, reverse=True)
        if head.endswith(quote) and len(head) > len(quote)
    ]
    for quote in matches:
        if len(head) - len(quote) >= _MIN_BASE_LENGTH:
            return head[: -len(quote)]
    if matches:
        return head[: -len(matches[0])]
    return head


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    """Create a decimal from ``value`` going through ``str`` to avoid binary noise."""

    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def truncate_quantity(quantity: Decimal, decimals: int | None) -> Decimal:
    """Round ``quantity`` toward zero to ``decimals`` places."""

    if decimals is None:
        return quantity
    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    with localcontext() as ctx:
        ctx.prec = 28
        return quantity.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN)


class SymbolPrecision:
    """Lookup table of lot precision (decimal places) per symbol."""

    def __init__(
        self,
        precisions: Mapping[str, int] | None = None,
        *,
        default: int | None = None,
    ) -> None:
        self._precisions: Dict[str, int] = {
            canonical_symbol(symbol): int(decimals)
            for symbol, decimals in (precisions or {}).items()
        }
        self._default = default

    def decimals_for(self, symbol: str) -> int | None:
        return self._precisions.get(canonical_symbol(symbol), self._default)

    def truncate(self, symbol: str, quantity: Decimal) -> Decimal:
        return truncate_quantity(quantity, self.decimals_for(symbol))


__all__ = [
    "DEFAULT_QUOTE_ASSETS",
    "SymbolPrecision",
    "canonical_symbol",
    "spot_coin",
    "to_decimal",
    "truncate_quantity",
]
