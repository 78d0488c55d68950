from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from autofinance.batch import valuate_frame
from autofinance.data_models import LoanApplicationInput
from autofinance.eligibility import evaluate
from autofinance.errors import ValidationError
from autofinance.loans import LoanStatus, open_loan, summarize_loans, update_status
from autofinance.rates import monthly_payment, total_payable
from autofinance.valuation import ValuationCalculator

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def application():
    return LoanApplicationInput(
        credit_score=750,
        vehicle_value=10_000_000,
        requested_amount=8_000_000,
        down_payment=2_000_000,
        monthly_income=500_000,
        loan_term_months=48,
    )


@pytest.fixture
def rejected_application(application):
    return LoanApplicationInput(
        credit_score=580,
        vehicle_value=application.vehicle_value,
        requested_amount=application.requested_amount,
        down_payment=application.down_payment,
        monthly_income=application.monthly_income,
        loan_term_months=application.loan_term_months,
    )


# ── Loan records ─────────────────────────────────────────────────────


def test_open_loan_for_eligible_application(application):
    record = open_loan(application, evaluate(application), now=NOW)
    payment = monthly_payment(6_000_000, 0.05, 48)
    assert record.status is LoanStatus.UNDER_REVIEW
    assert record.status_reason == "Passed initial eligibility checks"
    assert record.approved_amount == 6_000_000
    assert record.interest_rate == 0.05
    assert record.monthly_payment == payment
    assert record.total_payable == total_payable(payment, 48)
    assert record.loan_to_value_ratio == pytest.approx(0.6)
    assert record.debt_to_income_ratio == pytest.approx(payment / 500_000)
    assert record.rejected_at is None


def test_open_loan_for_rejected_application(rejected_application):
    decision = evaluate(rejected_application)
    record = open_loan(rejected_application, decision, now=NOW)
    assert record.status is LoanStatus.REJECTED
    assert record.status_reason == "; ".join(decision.reasons)
    assert record.approved_amount is None
    assert record.interest_rate == 0.18
    assert record.rejected_at == NOW


def test_status_updates_are_unguarded(rejected_application):
    record = open_loan(rejected_application, evaluate(rejected_application), now=NOW)
    later = NOW + timedelta(days=2)

    approved = update_status(record, LoanStatus.APPROVED, "Manual override", now=later)
    assert approved.status is LoanStatus.APPROVED
    assert approved.approved_at == later
    assert approved.status_reason == "Manual override"
    assert record.status is LoanStatus.REJECTED

    completed = update_status(approved, LoanStatus.COMPLETED, now=later)
    reopened = update_status(completed, LoanStatus.PENDING, now=later)
    assert reopened.status is LoanStatus.PENDING
    assert reopened.status_reason == ""


def test_reject_clears_approved_amount(application):
    record = open_loan(application, evaluate(application), now=NOW)
    disbursed = update_status(record, LoanStatus.DISBURSED, now=NOW)
    assert disbursed.disbursed_at == NOW
    assert disbursed.approved_amount == 6_000_000

    rejected = update_status(disbursed, LoanStatus.REJECTED, "Fraud check", now=NOW)
    assert rejected.approved_amount is None
    assert rejected.rejected_at == NOW


def test_summarize_loans(application, rejected_application):
    accepted = open_loan(application, evaluate(application), now=NOW)
    records = [
        update_status(accepted, LoanStatus.APPROVED, now=NOW),
        update_status(accepted, LoanStatus.ACTIVE, now=NOW),
        accepted,
        open_loan(rejected_application, evaluate(rejected_application), now=NOW),
    ]
    summary = summarize_loans(records)
    assert summary["total"] == 4
    assert summary["by_status"] == {"approved": 1, "active": 1, "under_review": 1, "rejected": 1}
    assert summary["total_approved_amount"] == pytest.approx(12_000_000)


def test_summarize_no_loans():
    assert summarize_loans([]) == {"total": 0, "by_status": {}, "total_approved_amount": 0.0}


# ── Batch valuation ──────────────────────────────────────────────────


def test_valuate_frame_matches_scalar_calculator():
    calculator = ValuationCalculator()
    frame = pd.DataFrame(
        [
            {
                "vin": "2T1BURHE0JC012345",
                "make": "Toyota",
                "model": "Corolla",
                "year": 2024,
                "mileage": 40_000,
                "condition": "good",
                "purchase_price": None,
            },
            {
                "vin": "WBA8E9G50GNU12345",
                "make": "BMW",
                "model": "330i",
                "year": 2021,
                "mileage": 50_000,
                "condition": "excellent",
                "purchase_price": 60_000.0,
            },
        ]
    )
    out = valuate_frame(frame, calculator, as_of=NOW)
    assert out["estimated_value"].tolist() == [16959, 28242]
    assert out["vehicle_age"].tolist() == [2, 5]
    assert (out["trade_in_value"] < out["estimated_value"]).all()
    assert (out["retail_value"] > out["estimated_value"]).all()
    assert "estimated_value" not in frame.columns


def test_valuate_frame_without_optional_columns():
    frame = pd.DataFrame([{"vin": "V1", "make": "Lada", "model": "Niva", "year": 2026, "mileage": 0}])
    out = valuate_frame(frame, ValuationCalculator(), as_of=NOW)
    # unknown make, age 0, GOOD condition
    assert out["estimated_value"].tolist() == [25500]


def test_valuate_frame_requires_columns():
    with pytest.raises(ValidationError):
        valuate_frame(pd.DataFrame([{"vin": "V1", "make": "Ford"}]), ValuationCalculator(), as_of=NOW)
