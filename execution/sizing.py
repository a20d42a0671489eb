# SPDX-License-Identifier: MIT
"""Pure order-size arithmetic shared by every exchange capability.

Quantities are computed with :class:`decimal.Decimal` and returned as floats,
mirroring how venue payloads are consumed elsewhere in the engine. Nothing in
this module performs I/O.
"""

from __future__ import annotations

from decimal import Decimal

from domain.trade import InvalidSizeSpecError, SizeKind, SizeSpec

from .normalization import to_decimal, truncate_quantity

_HUNDRED = Decimal(100)

SizeInput = SizeSpec | str | float | int | Decimal | None


def _validated_exposure(current_exposure: float) -> Decimal:
    exposure = to_decimal(current_exposure)
    if exposure < 0:
        raise ValueError("current_exposure must be a non-negative magnitude")
    return exposure


def _validated_price(reference_price: float) -> Decimal:
    price = to_decimal(reference_price)
    if price <= 0:
        raise ValueError("reference_price must be positive")
    return price


def relative_size(current_exposure: float, percent: Decimal, symbol_precision: int | None = None) -> float:
    """Return ``percent`` of ``current_exposure``; exactly the exposure at 100%."""

    exposure = _validated_exposure(current_exposure)
    if percent == _HUNDRED:
        return float(exposure)
    return float(truncate_quantity(exposure * percent / _HUNDRED, symbol_precision))


def tokens_amount(amount: float | Decimal, reference_price: float, symbol_precision: int | None = None) -> float:
    """Convert a quote-currency ``amount`` into instrument tokens at ``reference_price``."""

    price = _validated_price(reference_price)
    return float(truncate_quantity(to_decimal(amount) / price, symbol_precision))


def compute_notional_cost(quantity: float, reference_price: float) -> float:
    """Quote-currency value of ``quantity`` tokens at ``reference_price``."""

    return float(to_decimal(quantity) * to_decimal(reference_price))


def compute_order_size(
    size_spec: SizeInput,
    reference_price: float,
    current_exposure: float,
    symbol_precision: int | None = None,
) -> float:
    """Translate a size specification into a token quantity.

    Args:
        size_spec: ``None``/empty for the full exposure, ``"N%"`` for a share of
            the exposure, or an absolute quote-currency amount.
        reference_price: Price used to convert absolute amounts into tokens.
        current_exposure: Unsigned exposure the size is relative to.
        symbol_precision: Optional number of decimals the result is truncated to.

    Raises:
        InvalidSizeSpecError: If ``size_spec`` cannot be parsed.
        ValueError: If the price or exposure are out of range.
    """

    spec = SizeSpec.parse(size_spec)
    if spec.kind is SizeKind.PERCENT:
        assert spec.value is not None
        return relative_size(current_exposure, spec.value, symbol_precision)
    if spec.kind is SizeKind.ABSOLUTE:
        assert spec.value is not None
        return tokens_amount(spec.value, reference_price, symbol_precision)
    return float(_validated_exposure(current_exposure))


def compute_close_order_size(
    size_spec: SizeInput,
    reference_price: float,
    current_exposure: float,
    symbol_precision: int | None = None,
) -> float:
    """Size of an order closing ``current_exposure``, never larger than the exposure itself."""

    requested = compute_order_size(size_spec, reference_price, current_exposure, symbol_precision)
    return min(requested, float(_validated_exposure(current_exposure)))


def compute_open_order_size(
    size_spec: SizeInput,
    reference_price: float,
    current_exposure: float = 0.0,
    counter_exposure: float = 0.0,
    symbol_precision: int | None = None,
) -> float:
    """Size of an order opening new exposure.

    An unset size reverses into the full magnitude of the opposite position,
    so ``counter_exposure`` must be positive in that case.
    """

    spec = SizeSpec.parse(size_spec)
    if spec.kind is SizeKind.UNSET:
        counter = _validated_exposure(counter_exposure)
        if counter == 0:
            raise InvalidSizeSpecError("an explicit size is required when no counter position exists")
        return float(counter)
    return compute_order_size(spec, reference_price, current_exposure, symbol_precision)


__all__ = [
    "compute_close_order_size",
    "compute_notional_cost",
    "compute_open_order_size",
    "compute_order_size",
    "relative_size",
    "tokens_amount",
]
