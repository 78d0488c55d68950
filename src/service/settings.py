from __future__ import annotations

import pydantic
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from autofinance.config import RateTiers, Thresholds, ValuationConfig
from autofinance.errors import ConfigurationError


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Loan thresholds
    min_credit_score: int = Field(default=600, ge=300, le=850, alias="MIN_CREDIT_SCORE")
    max_loan_to_value_ratio: float = Field(default=0.8, gt=0, le=1, alias="MAX_LOAN_TO_VALUE_RATIO")
    min_down_payment_percentage: float = Field(default=10.0, ge=0, le=100, alias="MIN_DOWN_PAYMENT_PERCENTAGE")
    max_loan_term_months: int = Field(default=72, ge=12, le=96, alias="MAX_LOAN_TERM_MONTHS")

    # Interest rate tiers
    rate_excellent: float = Field(default=0.05, ge=0, alias="RATE_EXCELLENT")
    rate_good: float = Field(default=0.08, ge=0, alias="RATE_GOOD")
    rate_fair: float = Field(default=0.12, ge=0, alias="RATE_FAIR")
    rate_poor: float = Field(default=0.18, ge=0, alias="RATE_POOR")

    # Valuation
    valuation_source: str = Field(default="AutoFinance Valuation Engine v1.0", alias="VALUATION_SOURCE")
    valuation_validity_days: int = Field(default=90, ge=0, alias="VALUATION_VALIDITY_DAYS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @classmethod
    def load(cls, **overrides) -> "ServiceSettings":
        try:
            return cls(**overrides)
        except pydantic.ValidationError as exc:
            raise ConfigurationError("Invalid service settings", {"errors": exc.errors()}) from exc

    def rate_tiers(self) -> RateTiers:
        return RateTiers(
            excellent=self.rate_excellent,
            good=self.rate_good,
            fair=self.rate_fair,
            poor=self.rate_poor,
        )

    def thresholds(self) -> Thresholds:
        return Thresholds(
            min_credit_score=self.min_credit_score,
            max_loan_to_value_ratio=self.max_loan_to_value_ratio,
            min_down_payment_percentage=self.min_down_payment_percentage,
            max_loan_term_months=self.max_loan_term_months,
            rate_tiers=self.rate_tiers(),
        )

    def valuation_config(self) -> ValuationConfig:
        return ValuationConfig(source=self.valuation_source, validity_days=self.valuation_validity_days)
