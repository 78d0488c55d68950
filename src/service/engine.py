from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from autofinance.config import DEFAULT_THRESHOLDS, Thresholds
from autofinance.data_models import (
    EligibilityDecision,
    LoanApplicationInput,
    ValuationResult,
    VehicleCondition,
    VehicleSnapshot,
)
from autofinance.eligibility import EligibilityEvaluator
from autofinance.loans import LoanRecord, open_loan
from autofinance.valuation import ValuationCalculator
from service.logging_config import configure_logging, decision_scope
from service.settings import ServiceSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplicantProfile:
    credit_score: int
    requested_amount: float
    down_payment: float
    monthly_income: float
    loan_term_months: int
    existing_debts: float = 0.0

    def against(self, vehicle_value: float) -> LoanApplicationInput:
        return LoanApplicationInput(
            credit_score=self.credit_score,
            vehicle_value=vehicle_value,
            requested_amount=self.requested_amount,
            down_payment=self.down_payment,
            monthly_income=self.monthly_income,
            loan_term_months=self.loan_term_months,
            existing_debts=self.existing_debts,
        )


@dataclass(frozen=True)
class Assessment:
    valuation: ValuationResult
    decision: EligibilityDecision


class DecisionEngine:
    """Valuation followed by eligibility, configured once from settings."""

    def __init__(
        self,
        calculator: Optional[ValuationCalculator] = None,
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self.calculator = calculator or ValuationCalculator()
        self.thresholds = thresholds
        self.evaluator = EligibilityEvaluator(thresholds)

    @classmethod
    def from_settings(cls, settings: Optional[ServiceSettings] = None) -> "DecisionEngine":
        settings = settings or ServiceSettings.load()
        configure_logging(settings.log_level, settings.log_format)
        return cls(
            calculator=ValuationCalculator(config=settings.valuation_config()),
            thresholds=settings.thresholds(),
        )

    def valuate(
        self,
        vehicle: VehicleSnapshot,
        mileage: Optional[int] = None,
        condition: Union[VehicleCondition, str, None] = None,
        *,
        as_of: Optional[datetime] = None,
    ) -> ValuationResult:
        with decision_scope(vehicle.vin):
            return self.calculator.valuate(vehicle, mileage, condition, as_of=as_of)

    def evaluate(self, application: LoanApplicationInput) -> EligibilityDecision:
        with decision_scope():
            return self.evaluator.evaluate(application)

    def assess(
        self,
        vehicle: VehicleSnapshot,
        applicant: ApplicantProfile,
        *,
        as_of: Optional[datetime] = None,
    ) -> Assessment:
        with decision_scope(vehicle.vin):
            return self._assess(vehicle, applicant, as_of)

    def open_loan(self, vehicle: VehicleSnapshot, applicant: ApplicantProfile, *, now: datetime) -> LoanRecord:
        with decision_scope(vehicle.vin):
            assessment = self._assess(vehicle, applicant, now)
            application = applicant.against(assessment.valuation.estimated_value)
            return open_loan(application, assessment.decision, now=now)

    def _assess(
        self,
        vehicle: VehicleSnapshot,
        applicant: ApplicantProfile,
        as_of: Optional[datetime],
    ) -> Assessment:
        valuation = self.calculator.valuate(vehicle, as_of=as_of)
        decision = self.evaluator.evaluate(applicant.against(valuation.estimated_value))
        logger.info(
            "Assessment completed",
            extra={
                "extra_data": {
                    "estimated_value": valuation.estimated_value,
                    "is_eligible": decision.is_eligible,
                }
            },
        )
        return Assessment(valuation=valuation, decision=decision)
