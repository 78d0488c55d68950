from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Union

from autofinance.config import DEFAULT_VALUATION_CONFIG, ValuationConfig
from autofinance.data_models import ValuationFactors, ValuationResult, VehicleCondition, VehicleSnapshot
from autofinance.depreciation import DEFAULT_CONDITION, condition_multiplier, depreciate, normalize_condition
from autofinance.errors import ValidationError
from autofinance.rates import round_whole

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValuationCalculator:
    """
    Rule-based market value estimate for a single vehicle.

    Holds only read-only configuration and a clock; every call is independent.
    """

    config: ValuationConfig = DEFAULT_VALUATION_CONFIG
    clock: Callable[[], datetime] = field(default=_utc_now)

    def base_value(self, vehicle: VehicleSnapshot) -> float:
        if vehicle.purchase_price is not None and vehicle.purchase_price > 0:
            return float(vehicle.purchase_price)
        make = (vehicle.make or "").strip().lower()
        return self.config.base_prices.get(make, self.config.default_base_price)

    def market_demand(self, make: str) -> float:
        if (make or "").strip().lower() in self.config.popular_makes:
            return self.config.popular_make_demand
        return 1.0

    def mileage_factor(self, mileage: int, age: int) -> float:
        expected = age * self.config.annual_mileage_km
        excess = max(0, mileage - expected)
        reduction = excess / 1000 * self.config.mileage_penalty_per_1000_km
        return min(1.0, max(0.0, 1.0 - reduction))

    def valuate(
        self,
        vehicle: VehicleSnapshot,
        mileage: Optional[int] = None,
        condition: Union[VehicleCondition, str, None] = None,
        *,
        as_of: Optional[datetime] = None,
    ) -> ValuationResult:
        if vehicle.year is None:
            raise ValidationError("Vehicle year is required for valuation", {"vin": vehicle.vin})
        used_mileage = vehicle.mileage if mileage is None else mileage
        if used_mileage is None or used_mileage < 0:
            raise ValidationError("Mileage cannot be negative", {"vin": vehicle.vin, "mileage": used_mileage})

        created_at = as_of or self.clock()
        # Future model years count as brand new.
        age = max(0, created_at.year - vehicle.year)
        # A present but unknown override is priced as GOOD.
        requested = condition if condition else vehicle.condition
        used_condition = normalize_condition(requested) or DEFAULT_CONDITION

        base = self.base_value(vehicle)
        depreciation = depreciate(age, self.config)
        condition_mult = condition_multiplier(used_condition)
        mileage_mult = self.mileage_factor(used_mileage, age)
        demand = self.market_demand(vehicle.make)

        raw_value = base * depreciation * condition_mult * mileage_mult * demand

        factors = ValuationFactors(
            age=age,
            mileage=used_mileage,
            condition=used_condition.value,
            market_demand=demand * 100,
            location_adjustment=1.0,
            seasonal_factor=1.0,
            depreciation_factor=depreciation,
        )
        result = ValuationResult(
            vin=vehicle.vin,
            estimated_value=round_whole(raw_value),
            trade_in_value=round_whole(raw_value * self.config.trade_in_ratio),
            retail_value=round_whole(raw_value * self.config.retail_ratio),
            private_party_value=round_whole(raw_value * self.config.private_party_ratio),
            confidence_score=self.config.confidence_score,
            source=self.config.source,
            factors=factors,
            created_at=created_at,
            valid_until=created_at + timedelta(days=self.config.validity_days),
            is_active=True,
        )
        logger.info(
            "Valuation calculated",
            extra={"extra_data": {"vin": vehicle.vin, "estimated_value": result.estimated_value, "age": age}},
        )
        return result


def valuate(
    vehicle: VehicleSnapshot,
    mileage: Optional[int] = None,
    condition: Union[VehicleCondition, str, None] = None,
    *,
    as_of: Optional[datetime] = None,
    config: ValuationConfig = DEFAULT_VALUATION_CONFIG,
) -> ValuationResult:
    return ValuationCalculator(config=config).valuate(vehicle, mileage, condition, as_of=as_of)


def supersede(result: ValuationResult) -> ValuationResult:
    return replace(result, is_active=False)


def current_valuation(results: Iterable[ValuationResult]) -> Optional[ValuationResult]:
    """Most recent active result, or None when every result has been superseded."""
    active = [r for r in results if r.is_active]
    if not active:
        return None
    return max(active, key=lambda r: r.created_at)
