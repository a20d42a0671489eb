# SPDX-License-Identifier: MIT
"""Shared utilities for the exposure engine."""

from .logging import (
    JSONFormatter,
    StructuredLogger,
    configure_logging,
    configure_logging_from,
    evaluation_context,
    get_logger,
)

__all__ = [
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "configure_logging_from",
    "evaluation_context",
    "get_logger",
]
