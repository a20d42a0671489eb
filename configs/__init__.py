"""Typed configuration for the exposure engine."""

from .settings import BudgetFailurePolicy, ExposureSettings, load_settings

__all__ = [
    "BudgetFailurePolicy",
    "ExposureSettings",
    "load_settings",
]
