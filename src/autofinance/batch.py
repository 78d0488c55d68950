from __future__ import annotations

from datetime import datetime
from typing import Any

import pandas as pd

from autofinance.data_models import VehicleSnapshot
from autofinance.depreciation import normalize_condition
from autofinance.errors import ValidationError
from autofinance.valuation import ValuationCalculator

REQUIRED_COLUMNS = ("vin", "make", "model", "year", "mileage")


def _optional(value: Any) -> Any:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value


def snapshot_from_row(row: pd.Series) -> VehicleSnapshot:
    year = _optional(row.get("year"))
    price = _optional(row.get("purchase_price"))
    return VehicleSnapshot(
        vin=str(row["vin"]),
        make=str(row["make"]),
        model=str(row["model"]),
        year=int(year) if year is not None else None,
        mileage=int(row["mileage"]),
        condition=normalize_condition(_optional(row.get("condition"))),
        purchase_price=float(price) if price is not None else None,
    )


def valuate_frame(frame: pd.DataFrame, calculator: ValuationCalculator, *, as_of: datetime) -> pd.DataFrame:
    """
    Values every row of ``frame`` with the scalar calculator.

    ``condition`` and ``purchase_price`` columns are optional; a missing or
    unknown condition is valued as GOOD.
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise ValidationError("Vehicle frame is missing columns", {"missing": missing})

    output = frame.copy()
    results = [calculator.valuate(snapshot_from_row(row), as_of=as_of) for _, row in frame.iterrows()]
    output["vehicle_age"] = [r.factors.age for r in results]
    output["depreciation_factor"] = [r.factors.depreciation_factor for r in results]
    output["estimated_value"] = [r.estimated_value for r in results]
    output["trade_in_value"] = [r.trade_in_value for r in results]
    output["retail_value"] = [r.retail_value for r in results]
    output["private_party_value"] = [r.private_party_value for r in results]
    return output
