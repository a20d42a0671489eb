from decimal import Decimal

import pytest

from domain import InvalidSizeSpecError, SizeSpec
from execution.sizing import (
    compute_close_order_size,
    compute_notional_cost,
    compute_open_order_size,
    compute_order_size,
    relative_size,
    tokens_amount,
)


@pytest.mark.parametrize("percent", ["1%", "12.5%", "33%", "50%", "99.9%"])
def test_percentage_is_share_of_exposure(percent: str) -> None:
    exposure = 0.5
    expected = exposure * float(percent[:-1]) / 100
    assert compute_order_size(percent, 30000.0, exposure) == pytest.approx(expected)


def test_full_percentage_returns_exposure_exactly() -> None:
    exposure = 0.123456789123
    assert compute_order_size("100%", 30000.0, exposure) == exposure
    assert compute_order_size("100%", 30000.0, exposure, symbol_precision=3) == exposure


def test_unset_size_returns_full_exposure() -> None:
    assert compute_order_size(None, 30000.0, 1.75) == 1.75
    assert compute_order_size(SizeSpec.parse(""), 30000.0, 1.75) == 1.75


def test_absolute_amount_is_quote_currency() -> None:
    assert compute_order_size("15000", 30000.0, 0.0) == pytest.approx(0.5)


def test_absolute_amount_truncates_to_lot_precision() -> None:
    assert tokens_amount(Decimal("100"), 3.0, 4) == pytest.approx(33.3333)
    assert tokens_amount(Decimal("2"), 3.0, 2) == pytest.approx(0.66)


def test_percentage_truncates_toward_zero() -> None:
    assert relative_size(0.999, Decimal("50"), 3) == pytest.approx(0.499)


@pytest.mark.parametrize("amount", [10.0, 125.5, 999.99, 30000.0])
def test_notional_cost_inverts_absolute_size(amount: float) -> None:
    price = 27123.45
    quantity = compute_order_size(str(amount), price, 0.0, symbol_precision=8)
    assert compute_notional_cost(quantity, price) == pytest.approx(amount, abs=price * 1e-8)


def test_close_size_is_capped_at_current_exposure() -> None:
    # 10000 quote at 3000 is 3.33 tokens, more than the 2 held
    assert compute_close_order_size("10000", 3000.0, 2.0) == 2.0
    assert compute_close_order_size("3000", 3000.0, 2.0) == pytest.approx(1.0)
    assert compute_close_order_size("50%", 3000.0, 2.0) == pytest.approx(1.0)


def test_open_size_with_unset_spec_uses_counter_position() -> None:
    assert compute_open_order_size(None, 3000.0, counter_exposure=2.0) == 2.0
    assert compute_open_order_size("6000", 3000.0, counter_exposure=2.0) == pytest.approx(2.0)
    assert compute_open_order_size("25%", 3000.0, current_exposure=4.0) == pytest.approx(1.0)


def test_open_size_with_unset_spec_requires_counter_position() -> None:
    with pytest.raises(InvalidSizeSpecError):
        compute_open_order_size(None, 3000.0)


def test_invalid_inputs_are_rejected() -> None:
    with pytest.raises(InvalidSizeSpecError):
        compute_order_size("lots", 100.0, 1.0)
    with pytest.raises(ValueError):
        compute_order_size("100", 0.0, 1.0)
    with pytest.raises(ValueError):
        compute_order_size("50%", 100.0, -1.0)
    with pytest.raises(ValueError):
        tokens_amount(Decimal("1"), 1.0, -1)
