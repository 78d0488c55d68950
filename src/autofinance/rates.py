from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd

from autofinance.config import DEFAULT_RATE_TIERS, RateTiers
from autofinance.errors import ValidationError

logger = logging.getLogger(__name__)


def round_half_up(value: float, places: int = 2) -> float:
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor


def round_whole(value: float) -> int:
    return int(math.floor(value + 0.5))


def rate_for(credit_score: int, tiers: RateTiers = DEFAULT_RATE_TIERS) -> float:
    if credit_score >= 750:
        return tiers.excellent
    if credit_score >= 700:
        return tiers.good
    if credit_score >= 650:
        return tiers.fair
    return tiers.poor


def _check_loan_terms(principal: float, annual_rate: float, months: int) -> None:
    if principal < 0:
        raise ValidationError("Principal cannot be negative", {"principal": principal})
    if annual_rate < 0:
        raise ValidationError("Annual rate cannot be negative", {"annual_rate": annual_rate})
    if months < 1:
        raise ValidationError("Loan term must be at least one month", {"months": months})


def monthly_payment(principal: float, annual_rate: float, months: int) -> float:
    """
    Fixed monthly installment for a fully amortizing loan, rounded to cents.

    A zero (or vanishingly small) rate falls back to straight-line repayment.
    """
    _check_loan_terms(principal, annual_rate, months)
    monthly_rate = annual_rate / 12
    growth = (1 + monthly_rate) ** months
    if annual_rate == 0 or growth == 1:
        return round_half_up(principal / months)

    payment = principal * monthly_rate * growth / (growth - 1)
    logger.debug(
        "Monthly payment calculated",
        extra={"extra_data": {"principal": principal, "annual_rate": annual_rate, "months": months, "payment": payment}},
    )
    return round_half_up(payment)


def total_payable(payment: float, months: int) -> float:
    return round_half_up(payment * months)


def amortization_schedule(principal: float, annual_rate: float, months: int) -> pd.DataFrame:
    """
    Period-by-period breakdown of a loan repaid at the rounded monthly payment.

    Interest is rounded to cents each period and the last payment absorbs the
    leftover so the closing balance is exactly zero. Summing the ``payment``
    column therefore differs from ``total_payable`` by a few cents at most.
    """
    payment = monthly_payment(principal, annual_rate, months)
    monthly_rate = annual_rate / 12

    payments = np.zeros(months)
    interest = np.zeros(months)
    principal_paid = np.zeros(months)
    balances = np.zeros(months)

    balance = float(principal)
    for idx in range(months):
        period_interest = round_half_up(balance * monthly_rate)
        period_payment = payment
        if idx == months - 1:
            period_payment = round_half_up(balance + period_interest)
        reduction = min(balance, round_half_up(period_payment - period_interest))
        balance = round_half_up(balance - reduction)
        payments[idx] = period_payment
        interest[idx] = period_interest
        principal_paid[idx] = reduction
        balances[idx] = balance

    return pd.DataFrame(
        {
            "period": np.arange(1, months + 1),
            "payment": payments,
            "interest": interest,
            "principal": principal_paid,
            "balance": balances,
        }
    )
