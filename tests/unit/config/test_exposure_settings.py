from __future__ import annotations

import pytest
from pydantic import ValidationError

from configs.settings import BudgetFailurePolicy, ExposureSettings, load_settings


def test_defaults() -> None:
    settings = ExposureSettings(_env_file=None)

    assert settings.sandbox is True
    assert settings.simple_budget_policy is BudgetFailurePolicy.PROPAGATE
    assert settings.composite_budget_policy is BudgetFailurePolicy.ALLOW
    assert settings.default_lot_precision is None
    assert settings.session_ttl_seconds == pytest.approx(900.0)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXPOSURE_SANDBOX", "false")
    monkeypatch.setenv("EXPOSURE_COMPOSITE_BUDGET_POLICY", "propagate")
    monkeypatch.setenv("EXPOSURE_SYMBOL_PRECISIONS", '{"btc/usdt": 5}')
    monkeypatch.setenv("EXPOSURE_LOG_LEVEL", "debug")

    settings = ExposureSettings(_env_file=None)

    assert settings.sandbox is False
    assert settings.composite_budget_policy is BudgetFailurePolicy.PROPAGATE
    assert settings.symbol_precisions == {"BTC/USDT": 5}
    assert settings.log_level == "DEBUG"


def test_load_settings_applies_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXPOSURE_HTTP_TIMEOUT_SECONDS", "3")

    settings = load_settings(default_lot_precision=4)

    assert settings.http_timeout_seconds == pytest.approx(3.0)
    assert settings.default_lot_precision == 4


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "verbose"},
        {"http_timeout_seconds": 0},
        {"default_lot_precision": -1},
        {"simple_budget_policy": "ignore"},
    ],
)
def test_invalid_values_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        ExposureSettings(_env_file=None, **overrides)
