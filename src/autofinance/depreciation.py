from __future__ import annotations

from typing import Dict, Optional, Union

from autofinance.config import DEFAULT_VALUATION_CONFIG, ValuationConfig
from autofinance.data_models import VehicleCondition


CONDITION_MULTIPLIERS: Dict[VehicleCondition, float] = {
    VehicleCondition.NEW: 1.00,
    VehicleCondition.EXCELLENT: 0.95,
    VehicleCondition.GOOD: 0.85,
    VehicleCondition.FAIR: 0.70,
    VehicleCondition.POOR: 0.50,
}
DEFAULT_CONDITION = VehicleCondition.GOOD


def depreciation_rate(year: int, config: ValuationConfig = DEFAULT_VALUATION_CONFIG) -> float:
    if 0 <= year < len(config.depreciation_schedule):
        return config.depreciation_schedule[year]
    return config.depreciation_tail_rate


def depreciate(age: int, config: ValuationConfig = DEFAULT_VALUATION_CONFIG) -> float:
    """
    Remaining-value fraction after ``age`` completed years.

    Compounds the per-year rate for years 0..age-1 and never drops below
    the configured floor. Negative ages count as brand new.
    """
    remaining = 1.0
    for year in range(max(0, int(age))):
        remaining *= 1.0 - depreciation_rate(year, config)
    return max(remaining, config.depreciation_floor)


def normalize_condition(condition: Union[VehicleCondition, str, None]) -> Optional[VehicleCondition]:
    if isinstance(condition, VehicleCondition):
        return condition
    if isinstance(condition, str):
        try:
            return VehicleCondition(condition.strip().lower())
        except ValueError:
            return None
    return None


def condition_multiplier(condition: Union[VehicleCondition, str, None]) -> float:
    resolved = normalize_condition(condition)
    if resolved is None:
        return CONDITION_MULTIPLIERS[DEFAULT_CONDITION]
    return CONDITION_MULTIPLIERS[resolved]
