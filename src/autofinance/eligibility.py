from __future__ import annotations

import logging
from dataclasses import dataclass

from autofinance.config import DEFAULT_THRESHOLDS, Thresholds
from autofinance.data_models import (
    CheckDirection,
    EligibilityCheck,
    EligibilityDecision,
    LoanApplicationInput,
)
from autofinance.errors import ValidationError
from autofinance.rates import monthly_payment, rate_for

logger = logging.getLogger(__name__)

# Industry debt-to-income ceiling, not part of the configurable thresholds.
MAX_DEBT_TO_INCOME = 0.43

CREDIT_SCORE = "credit_score"
LOAN_TO_VALUE = "loan_to_value"
DOWN_PAYMENT = "down_payment"
DEBT_TO_INCOME = "debt_to_income"
LOAN_TERM = "loan_term"


def validate_application(application: LoanApplicationInput) -> None:
    if application.vehicle_value <= 0:
        raise ValidationError("Vehicle value must be positive", {"vehicle_value": application.vehicle_value})
    if application.monthly_income <= 0:
        raise ValidationError("Monthly income must be positive", {"monthly_income": application.monthly_income})
    if not 300 <= application.credit_score <= 850:
        raise ValidationError("Credit score must be between 300 and 850", {"credit_score": application.credit_score})
    if application.loan_term_months < 1:
        raise ValidationError("Loan term must be at least one month", {"loan_term_months": application.loan_term_months})
    for name in ("requested_amount", "down_payment", "existing_debts"):
        amount = getattr(application, name)
        if amount < 0:
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} cannot be negative", {name: amount})


def financed_amount(application: LoanApplicationInput) -> float:
    return max(0.0, application.requested_amount - application.down_payment)


def max_approved_fallback(application: LoanApplicationInput, thresholds: Thresholds) -> float:
    # Monthly affordability times the term, undiscounted, capped by collateral.
    term = application.loan_term_months
    by_collateral = application.vehicle_value * thresholds.max_loan_to_value_ratio
    by_income = application.monthly_income * MAX_DEBT_TO_INCOME * term - application.existing_debts * term
    return max(0.0, min(by_collateral, by_income))


@dataclass(frozen=True)
class EligibilityEvaluator:
    """
    Multi-criteria loan decision over a vehicle value and applicant finances.

    Every criterion is evaluated even after one fails, so the decision always
    carries five checks and one reason per failed check.
    """

    thresholds: Thresholds = DEFAULT_THRESHOLDS

    def evaluate(self, application: LoanApplicationInput) -> EligibilityDecision:
        validate_application(application)
        limits = self.thresholds
        reasons: list[str] = []

        credit_passed = application.credit_score >= limits.min_credit_score
        if not credit_passed:
            reasons.append(
                f"Credit score {application.credit_score} is below minimum required {limits.min_credit_score}"
            )

        financed = financed_amount(application)
        ltv = financed / application.vehicle_value
        ltv_passed = ltv <= limits.max_loan_to_value_ratio
        if not ltv_passed:
            reasons.append(
                f"Loan-to-value ratio {ltv * 100:.2f}% exceeds maximum {limits.max_loan_to_value_ratio * 100:.2f}%"
            )

        down_payment_pct = application.down_payment / application.vehicle_value * 100
        down_payment_passed = down_payment_pct >= limits.min_down_payment_percentage
        if not down_payment_passed:
            reasons.append(
                f"Down payment {down_payment_pct:.2f}% is below minimum {limits.min_down_payment_percentage:g}%"
            )

        rate = rate_for(application.credit_score, limits.rate_tiers)
        payment = monthly_payment(financed, rate, application.loan_term_months)
        dti = (payment + application.existing_debts) / application.monthly_income
        dti_passed = dti <= MAX_DEBT_TO_INCOME
        if not dti_passed:
            reasons.append(f"Debt-to-income ratio {dti * 100:.2f}% exceeds maximum {MAX_DEBT_TO_INCOME * 100:g}%")

        term_passed = application.loan_term_months <= limits.max_loan_term_months
        if not term_passed:
            reasons.append(
                f"Loan term {application.loan_term_months} months exceeds maximum {limits.max_loan_term_months} months"
            )

        checks = (
            EligibilityCheck(CREDIT_SCORE, credit_passed, application.credit_score, limits.min_credit_score, CheckDirection.MINIMUM),
            EligibilityCheck(LOAN_TO_VALUE, ltv_passed, ltv, limits.max_loan_to_value_ratio, CheckDirection.MAXIMUM),
            EligibilityCheck(
                DOWN_PAYMENT, down_payment_passed, down_payment_pct, limits.min_down_payment_percentage, CheckDirection.MINIMUM
            ),
            EligibilityCheck(DEBT_TO_INCOME, dti_passed, dti, MAX_DEBT_TO_INCOME, CheckDirection.MAXIMUM),
            EligibilityCheck(
                LOAN_TERM, term_passed, application.loan_term_months, limits.max_loan_term_months, CheckDirection.MAXIMUM
            ),
        )
        is_eligible = all(check.passed for check in checks)

        decision = EligibilityDecision(
            is_eligible=is_eligible,
            reasons=tuple(reasons),
            checks=checks,
            interest_rate=rate,
            monthly_payment=payment,
            financed_amount=financed,
            max_approved_amount=(
                application.requested_amount if is_eligible else max_approved_fallback(application, limits)
            ),
            recommended_interest_rate=rate if is_eligible else None,
        )
        logger.info(
            "Eligibility check completed",
            extra={"extra_data": {"is_eligible": decision.is_eligible, "reasons": list(decision.reasons)}},
        )
        return decision


def evaluate(application: LoanApplicationInput, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> EligibilityDecision:
    return EligibilityEvaluator(thresholds).evaluate(application)
