"""Configuration surface for the risk engine."""
from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from riskgate.constants import DEFAULT_MAX_HISTORY
from riskgate.models import VelocityLimitConfig


class RiskSettings(BaseSettings):
    """Risk engine configuration, read from ``RISKGATE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RISKGATE_",
        env_file=".env",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "sandbox", "prod"] = "dev"

    # History retention per user and per device
    max_history_per_key: int = DEFAULT_MAX_HISTORY

    # Default velocity limits (minor units)
    default_daily_limit: Decimal = Decimal("500000")
    default_hourly_limit: Decimal = Decimal("100000")
    default_transaction_limit: Decimal = Decimal("50000")

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("max_history_per_key")
    @classmethod
    def validate_history_cap(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_history_per_key must be at least 1")
        return v

    @field_validator(
        "default_daily_limit",
        "default_hourly_limit",
        "default_transaction_limit",
    )
    @classmethod
    def validate_limit(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError("velocity limits must be finite and positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return str(v).upper()

    def velocity_limits(self) -> VelocityLimitConfig:
        """Default velocity limits applied to users without an override."""
        return VelocityLimitConfig(
            daily_limit=self.default_daily_limit,
            hourly_limit=self.default_hourly_limit,
            transaction_limit=self.default_transaction_limit,
        )


@lru_cache
def load_settings(env_file: str | None = None) -> RiskSettings:
    """Load RiskSettings once per process to keep services consistent."""
    if env_file:
        return RiskSettings(_env_file=Path(env_file))
    return RiskSettings()
