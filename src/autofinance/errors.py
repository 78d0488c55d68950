from __future__ import annotations

from typing import Any


class AutoFinanceError(Exception):
    """Base exception for valuation and eligibility errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(AutoFinanceError):
    """Raised when an input is malformed or outside its domain."""


class ConfigurationError(AutoFinanceError):
    """Raised when thresholds, rate tiers or valuation tables are malformed."""
