from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class VehicleCondition(str, Enum):
    NEW = "new"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class CheckDirection(str, Enum):
    MINIMUM = "minimum"
    MAXIMUM = "maximum"


@dataclass(frozen=True)
class VehicleSnapshot:
    vin: str
    make: str
    model: str
    year: Optional[int]
    mileage: int
    condition: Optional[VehicleCondition] = VehicleCondition.GOOD
    purchase_price: Optional[float] = None


@dataclass(frozen=True)
class ValuationFactors:
    age: int
    mileage: int
    condition: str
    market_demand: float  # percent, 105.0 for popular makes
    location_adjustment: float
    seasonal_factor: float
    depreciation_factor: float


@dataclass(frozen=True)
class ValuationResult:
    vin: str
    estimated_value: int
    trade_in_value: int
    retail_value: int
    private_party_value: int
    confidence_score: int
    source: str
    factors: ValuationFactors
    created_at: datetime
    valid_until: datetime
    is_active: bool = True

    def is_valid_at(self, moment: datetime) -> bool:
        return self.is_active and self.created_at <= moment <= self.valid_until


@dataclass(frozen=True)
class LoanApplicationInput:
    credit_score: int
    vehicle_value: float
    requested_amount: float
    down_payment: float
    monthly_income: float
    loan_term_months: int
    existing_debts: float = 0.0


@dataclass(frozen=True)
class EligibilityCheck:
    name: str
    passed: bool
    value: float
    threshold: float
    direction: CheckDirection


@dataclass(frozen=True)
class EligibilityDecision:
    is_eligible: bool
    reasons: tuple[str, ...]
    checks: tuple[EligibilityCheck, ...]
    interest_rate: float
    monthly_payment: float
    financed_amount: float
    max_approved_amount: float
    recommended_interest_rate: Optional[float] = None

    def check(self, name: str) -> EligibilityCheck:
        for item in self.checks:
            if item.name == name:
                return item
        raise KeyError(name)

    @property
    def failed_checks(self) -> tuple[EligibilityCheck, ...]:
        return tuple(item for item in self.checks if not item.passed)
