from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from autofinance.errors import ConfigurationError


RATE_TIER_NAMES = ("excellent", "good", "fair", "poor")


def _require_number(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"'{name}' must be a number", {name: value})


@dataclass(frozen=True)
class RateTiers:
    excellent: float = 0.05  # credit score >= 750
    good: float = 0.08  # >= 700
    fair: float = 0.12  # >= 650
    poor: float = 0.18

    def __post_init__(self) -> None:
        for name in RATE_TIER_NAMES:
            rate = getattr(self, name)
            _require_number(name, rate)
            if rate < 0:
                raise ConfigurationError(
                    f"Interest rate tier '{name}' must be a non-negative number",
                    {"tier": name, "rate": rate},
                )

    @classmethod
    def from_mapping(cls, rates: Mapping[str, float]) -> "RateTiers":
        missing = [name for name in RATE_TIER_NAMES if name not in rates]
        if missing:
            raise ConfigurationError("Interest rate tiers are incomplete", {"missing": missing})
        try:
            return cls(**{name: float(rates[name]) for name in RATE_TIER_NAMES})
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("Interest rate tiers must be numeric", {"error": str(exc)}) from exc


@dataclass(frozen=True)
class Thresholds:
    min_credit_score: int = 600
    max_loan_to_value_ratio: float = 0.8
    min_down_payment_percentage: float = 10.0
    max_loan_term_months: int = 72
    rate_tiers: RateTiers = field(default_factory=RateTiers)

    def __post_init__(self) -> None:
        for name in (
            "min_credit_score",
            "max_loan_to_value_ratio",
            "min_down_payment_percentage",
            "max_loan_term_months",
        ):
            _require_number(name, getattr(self, name))
        if not 300 <= self.min_credit_score <= 850:
            raise ConfigurationError(
                "Minimum credit score must be between 300 and 850",
                {"min_credit_score": self.min_credit_score},
            )
        if not 0 < self.max_loan_to_value_ratio <= 1:
            raise ConfigurationError(
                "Maximum loan-to-value ratio must be in (0, 1]",
                {"max_loan_to_value_ratio": self.max_loan_to_value_ratio},
            )
        if not 0 <= self.min_down_payment_percentage <= 100:
            raise ConfigurationError(
                "Minimum down payment percentage must be between 0 and 100",
                {"min_down_payment_percentage": self.min_down_payment_percentage},
            )
        if self.max_loan_term_months < 1:
            raise ConfigurationError(
                "Maximum loan term must be at least one month",
                {"max_loan_term_months": self.max_loan_term_months},
            )
        if not isinstance(self.rate_tiers, RateTiers):
            raise ConfigurationError("Thresholds require a RateTiers value", {"rate_tiers": self.rate_tiers})


@dataclass(frozen=True)
class ValuationConfig:
    default_base_price: float = 30000.0
    annual_mileage_km: int = 15000
    mileage_penalty_per_1000_km: float = 0.0002
    popular_make_demand: float = 1.05
    trade_in_ratio: float = 0.85
    retail_ratio: float = 1.15
    private_party_ratio: float = 0.95
    confidence_score: int = 85
    validity_days: int = 90
    source: str = "AutoFinance Valuation Engine v1.0"
    # Rate applied during each completed year of age; years past the table use the tail rate.
    depreciation_schedule: tuple[float, ...] = (0.20, 0.15, 0.12, 0.10, 0.08)
    depreciation_tail_rate: float = 0.05
    depreciation_floor: float = 0.1
    base_prices: Dict[str, float] = field(
        default_factory=lambda: {
            "toyota": 28000.0,
            "honda": 27000.0,
            "ford": 35000.0,
            "tesla": 45000.0,
            "bmw": 42000.0,
            "mercedes-benz": 50000.0,
        }
    )
    popular_makes: frozenset[str] = frozenset({"toyota", "honda", "ford", "chevrolet"})

    def __post_init__(self) -> None:
        for name in ("default_base_price", "validity_days", "depreciation_floor", "depreciation_tail_rate"):
            _require_number(name, getattr(self, name))
        for rate in self.depreciation_schedule:
            _require_number("depreciation_schedule", rate)
        if self.default_base_price <= 0:
            raise ConfigurationError("Default base price must be positive", {"default_base_price": self.default_base_price})
        if self.validity_days < 0:
            raise ConfigurationError("Validity window cannot be negative", {"validity_days": self.validity_days})
        if not 0 < self.depreciation_floor <= 1:
            raise ConfigurationError("Depreciation floor must be in (0, 1]", {"depreciation_floor": self.depreciation_floor})
        rates = (*self.depreciation_schedule, self.depreciation_tail_rate)
        if any(not 0 <= rate < 1 for rate in rates):
            raise ConfigurationError("Depreciation rates must be in [0, 1)", {"rates": rates})


DEFAULT_RATE_TIERS = RateTiers()
DEFAULT_THRESHOLDS = Thresholds()
DEFAULT_VALUATION_CONFIG = ValuationConfig()
