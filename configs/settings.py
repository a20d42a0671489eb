"""Runtime configuration for exchange sessions and risk-control policy."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import Field, NonNegativeInt, PositiveFloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "BudgetFailurePolicy",
    "ExposureSettings",
    "load_settings",
]


class BudgetFailurePolicy(str, Enum):
    """What the budget check does when current exposure cannot be determined."""

    PROPAGATE = "propagate"
    ALLOW = "allow"


class ExposureSettings(BaseSettings):
    """Settings consumed by exchange services, sessions and transport handles."""

    model_config = SettingsConfigDict(
        env_prefix="EXPOSURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    sandbox: bool = Field(
        True,
        description="Route transport handles to venue testnets instead of production endpoints.",
    )
    http_timeout_seconds: PositiveFloat = Field(
        10.0,
        description="Connect/write/pool timeout applied to exchange HTTP requests.",
    )
    http_read_timeout_seconds: PositiveFloat = Field(
        30.0,
        description="Read timeout applied to exchange HTTP requests.",
    )
    session_ttl_seconds: PositiveFloat = Field(
        900.0,
        description="Age after which a cached exchange session is refreshed.",
    )
    default_lot_precision: NonNegativeInt | None = Field(
        default=None,
        description="Decimal places used to truncate quantities for symbols without an explicit precision.",
    )
    symbol_precisions: dict[str, NonNegativeInt] = Field(
        default_factory=dict,
        description="Per-symbol decimal places used to truncate order quantities.",
    )
    simple_budget_policy: BudgetFailurePolicy = Field(
        BudgetFailurePolicy.PROPAGATE,
        description="Budget-check failure handling on spot-only and futures-only exchanges.",
    )
    composite_budget_policy: BudgetFailurePolicy = Field(
        BudgetFailurePolicy.ALLOW,
        description=(
            "Budget-check failure handling on composite exchanges. Defaults to allowing the trade, "
            "which differs from single-capability exchanges and is kept configurable on purpose."
        ),
    )
    log_level: str = Field("INFO", description="Root logging level.")
    log_json: bool = Field(True, description="Emit JSON formatted log records.")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {value}")
        return normalized

    @field_validator("symbol_precisions")
    @classmethod
    def _normalize_symbols(cls, value: Mapping[str, int]) -> dict[str, int]:
        return {str(symbol).upper(): int(decimals) for symbol, decimals in value.items()}


def load_settings(**overrides: Any) -> ExposureSettings:
    """Build settings from the environment, applying explicit ``overrides`` last."""

    return ExposureSettings(**overrides)
