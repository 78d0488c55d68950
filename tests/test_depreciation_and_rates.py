import pytest

from autofinance.config import RateTiers, ValuationConfig
from autofinance.data_models import VehicleCondition
from autofinance.depreciation import condition_multiplier, depreciate
from autofinance.errors import ConfigurationError, ValidationError
from autofinance.rates import (
    amortization_schedule,
    monthly_payment,
    rate_for,
    round_half_up,
    total_payable,
)


# ── Depreciation ─────────────────────────────────────────────────────


def test_new_vehicle_keeps_full_value():
    assert depreciate(0) == 1.0


def test_depreciation_compounds_yearly_rates():
    assert depreciate(1) == pytest.approx(0.80)
    assert depreciate(2) == pytest.approx(0.68)
    assert depreciate(5) == pytest.approx(0.8 * 0.85 * 0.88 * 0.90 * 0.92)
    assert depreciate(6) == pytest.approx(0.8 * 0.85 * 0.88 * 0.90 * 0.92 * 0.95)


def test_depreciation_floor():
    assert depreciate(40) == pytest.approx(0.1)
    assert depreciate(200) == pytest.approx(0.1)


def test_negative_age_treated_as_new():
    assert depreciate(-3) == 1.0


def test_depreciation_non_increasing_and_bounded():
    factors = [depreciate(age) for age in range(0, 61)]
    assert all(0.1 <= f <= 1.0 for f in factors)
    assert all(later <= earlier for earlier, later in zip(factors, factors[1:]))


def test_depreciation_uses_configured_schedule():
    cfg = ValuationConfig(depreciation_schedule=(0.5,), depreciation_tail_rate=0.0)
    assert depreciate(1, cfg) == pytest.approx(0.5)
    assert depreciate(10, cfg) == pytest.approx(0.5)


@pytest.mark.parametrize(
    "condition,expected",
    [
        (VehicleCondition.NEW, 1.00),
        (VehicleCondition.EXCELLENT, 0.95),
        (VehicleCondition.GOOD, 0.85),
        (VehicleCondition.FAIR, 0.70),
        (VehicleCondition.POOR, 0.50),
        ("fair", 0.70),
        ("EXCELLENT", 0.95),
        ("salvage", 0.85),
        (None, 0.85),
    ],
)
def test_condition_multiplier(condition, expected):
    assert condition_multiplier(condition) == expected


# ── Interest rate tiers ──────────────────────────────────────────────


@pytest.mark.parametrize(
    "score,expected",
    [(850, 0.05), (750, 0.05), (749, 0.08), (700, 0.08), (699, 0.12), (650, 0.12), (649, 0.18), (300, 0.18)],
)
def test_rate_for_default_tiers(score, expected):
    assert rate_for(score) == expected


def test_rate_for_custom_tiers():
    tiers = RateTiers(excellent=0.03, good=0.04, fair=0.06, poor=0.09)
    assert rate_for(760, tiers) == 0.03
    assert rate_for(610, tiers) == 0.09


# ── Amortization ─────────────────────────────────────────────────────


@pytest.mark.parametrize("principal,months", [(1000.0, 3), (1000.0, 7), (25_000.0, 60), (99.99, 1)])
def test_zero_rate_is_straight_line(principal, months):
    assert monthly_payment(principal, 0, months) == round_half_up(principal / months, 2)


def test_zero_rate_exact_values():
    assert monthly_payment(1000, 0, 3) == 333.33
    assert monthly_payment(1000, 0, 7) == 142.86


def test_annuity_payment():
    payment = monthly_payment(6_000_000, 0.05, 48)
    assert payment == pytest.approx(138_200, rel=1e-3)
    assert payment == round(payment, 2)
    assert monthly_payment(20_000, 0.06, 60) == pytest.approx(386.66, abs=0.01)


def test_zero_principal_pays_nothing():
    assert monthly_payment(0, 0.12, 24) == 0.0


@pytest.mark.parametrize("principal,rate,months", [(6_000_000, 0.05, 48), (18_500, 0.18, 72), (1234.56, 0, 5)])
def test_total_payable_multiplies_rounded_payment(principal, rate, months):
    payment = monthly_payment(principal, rate, months)
    assert total_payable(payment, months) == round_half_up(payment * months, 2)


@pytest.mark.parametrize("principal,rate,months", [(-1, 0.05, 12), (1000, -0.01, 12), (1000, 0.05, 0)])
def test_payment_rejects_out_of_domain_arguments(principal, rate, months):
    with pytest.raises(ValidationError):
        monthly_payment(principal, rate, months)


def test_round_half_up():
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(2.5, 0) == 3.0
    assert round_half_up(10.004, 2) == 10.0


def test_amortization_schedule_closes_balance():
    schedule = amortization_schedule(6_000_000, 0.05, 48)
    assert len(schedule) == 48
    assert list(schedule.columns) == ["period", "payment", "interest", "principal", "balance"]
    assert schedule["balance"].iloc[-1] == 0.0
    assert schedule["principal"].sum() == pytest.approx(6_000_000, abs=0.01)

    payment = monthly_payment(6_000_000, 0.05, 48)
    discrepancy = abs(schedule["payment"].sum() - total_payable(payment, 48))
    assert discrepancy < 1.0


def test_amortization_schedule_zero_rate():
    schedule = amortization_schedule(1000, 0, 3)
    assert schedule["payment"].tolist() == [333.33, 333.33, 333.34]
    assert schedule["interest"].sum() == 0.0
    assert schedule["balance"].tolist() == [666.67, 333.34, 0.0]


@pytest.mark.parametrize("rate", [1e-17, 1e-16])
def test_negligible_rate_pays_straight_line(rate):
    assert monthly_payment(1000, rate, 12) == monthly_payment(1000, 0, 12) == 83.33


@pytest.mark.parametrize("kwargs", [{"default_base_price": None}, {"validity_days": "90"}, {"depreciation_schedule": ("0.2",)}])
def test_malformed_valuation_config(kwargs):
    with pytest.raises(ConfigurationError):
        ValuationConfig(**kwargs)
