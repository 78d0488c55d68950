from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from autofinance.data_models import EligibilityDecision, LoanApplicationInput
from autofinance.eligibility import financed_amount
from autofinance.rates import monthly_payment, total_payable

logger = logging.getLogger(__name__)


class LoanStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"
    CANCELLED = "cancelled"


FUNDED_STATUSES = frozenset({LoanStatus.APPROVED, LoanStatus.DISBURSED, LoanStatus.ACTIVE})


@dataclass(frozen=True)
class LoanRecord:
    application: LoanApplicationInput
    decision: EligibilityDecision
    status: LoanStatus
    status_reason: str
    interest_rate: float
    monthly_payment: float
    total_payable: float
    loan_to_value_ratio: float
    debt_to_income_ratio: float
    approved_amount: Optional[float]
    created_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    disbursed_at: Optional[datetime] = None


def open_loan(application: LoanApplicationInput, decision: EligibilityDecision, *, now: datetime) -> LoanRecord:
    """
    Assemble the loan record a store would persist for a fresh application.

    Eligible applications enter review, the rest are rejected straight away.
    The recorded debt-to-income ratio covers the new installment only.
    """
    rate = decision.interest_rate
    financed = financed_amount(application)
    payment = monthly_payment(financed, rate, application.loan_term_months)
    ltv = financed / application.vehicle_value
    dti = payment / application.monthly_income

    if ltv > 5:
        logger.warning(
            "Unrealistic LTV ratio detected",
            extra={"extra_data": {"ltv_ratio": ltv, "vehicle_value": application.vehicle_value}},
        )
    if dti > 1:
        logger.warning(
            "Unrealistic DTI ratio detected",
            extra={"extra_data": {"dti_ratio": dti, "monthly_payment": payment}},
        )

    eligible = decision.is_eligible
    record = LoanRecord(
        application=application,
        decision=decision,
        status=LoanStatus.UNDER_REVIEW if eligible else LoanStatus.REJECTED,
        status_reason="Passed initial eligibility checks" if eligible else "; ".join(decision.reasons),
        interest_rate=rate,
        monthly_payment=payment,
        total_payable=total_payable(payment, application.loan_term_months),
        loan_to_value_ratio=ltv,
        debt_to_income_ratio=dti,
        approved_amount=financed if eligible else None,
        created_at=now,
        rejected_at=None if eligible else now,
    )
    logger.info("Loan application assembled", extra={"extra_data": {"status": record.status.value}})
    return record


def update_status(
    record: LoanRecord,
    status: LoanStatus,
    reason: Optional[str] = None,
    *,
    now: datetime,
) -> LoanRecord:
    # Any status may follow any other; there is no transition table.
    changes: Dict[str, Any] = {"status": status, "status_reason": reason or ""}
    if status is LoanStatus.APPROVED:
        changes["approved_at"] = now
    elif status is LoanStatus.REJECTED:
        changes["rejected_at"] = now
        changes["approved_amount"] = None
    elif status is LoanStatus.DISBURSED:
        changes["disbursed_at"] = now

    logger.info(
        "Loan status updated",
        extra={"extra_data": {"previous": record.status.value, "status": status.value}},
    )
    return replace(record, **changes)


def summarize_loans(records: Iterable[LoanRecord]) -> Dict[str, Any]:
    frame = pd.DataFrame(
        [{"status": r.status.value, "approved_amount": r.approved_amount} for r in records],
        columns=["status", "approved_amount"],
    )
    funded = frame[frame["status"].isin([s.value for s in FUNDED_STATUSES])]
    return {
        "total": int(len(frame)),
        "by_status": {str(k): int(v) for k, v in frame["status"].value_counts().items()},
        "total_approved_amount": float(funded["approved_amount"].fillna(0).sum()),
    }
