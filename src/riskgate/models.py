"""Risk engine data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import uuid

from riskgate.exceptions import RiskValidationError


DEFAULT_CURRENCY = "INR"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def coerce_amount(value: Any, field_name: str, allow_zero: bool = True) -> Decimal:
    """Convert to Decimal, rejecting NaN, infinities and negative amounts."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise RiskValidationError(f"{field_name} is not a decimal: {value!r}", field=field_name) from exc
    if not amount.is_finite():
        raise RiskValidationError(f"{field_name} must be finite, got {amount}", field=field_name)
    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise RiskValidationError(f"{field_name} must be {qualifier}, got {amount}", field=field_name)
    return amount


class RiskLevel(str, Enum):
    """Ordinal risk classification."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return _LEVEL_SEVERITY[self]


_LEVEL_SEVERITY = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class RiskAction(str, Enum):
    """Recommended gating decision handed back to the orchestrator."""
    ALLOW = "allow"
    MONITOR = "monitor"
    REQUIRE_ADDITIONAL_AUTH = "require_additional_auth"
    BLOCK = "block"


class FraudIndicator(str, Enum):
    """Named reasons a partial score was added."""
    BLACKLISTED_USER = "BLACKLISTED_USER"
    INVALID_USER = "INVALID_USER"
    HIGH_AMOUNT = "HIGH_AMOUNT"
    MEDIUM_AMOUNT = "MEDIUM_AMOUNT"
    HIGH_VELOCITY = "HIGH_VELOCITY"
    FREQUENT_TRANSACTIONS = "FREQUENT_TRANSACTIONS"
    NEW_DEVICE = "NEW_DEVICE"
    SHARED_DEVICE = "SHARED_DEVICE"
    COMPROMISED_DEVICE = "COMPROMISED_DEVICE"
    UNUSUAL_TIME = "UNUSUAL_TIME"
    AMOUNT_DEVIATION = "AMOUNT_DEVIATION"
    AMOUNT_ANOMALY = "AMOUNT_ANOMALY"
    NEW_RECIPIENT = "NEW_RECIPIENT"
    NEW_USER = "NEW_USER"
    # Standalone monitoring checks
    DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"
    HIGH_FREQUENCY_TRANSACTIONS = "HIGH_FREQUENCY_TRANSACTIONS"
    SHARED_DEVICE_SUSPICIOUS = "SHARED_DEVICE_SUSPICIOUS"


class DeviceTrust(str, Enum):
    """Externally sensed device integrity signal."""
    TRUSTED = "trusted"
    COMPROMISED = "compromised"  # rooted, tampered or debugger attached
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Location:
    """Coarse device location."""
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass(frozen=True)
class DeviceInfo:
    """Device details supplied with a transaction request."""
    device_id: str
    device_type: str = "unknown"
    ip_address: Optional[str] = None
    location: Optional[Location] = None
    trust: DeviceTrust = DeviceTrust.UNKNOWN


@dataclass(frozen=True)
class BehaviorMetrics:
    """Client-side behavioral telemetry. Accepted but not scored."""
    typing_speed: Optional[float] = None
    touch_pressure: Optional[float] = None
    time_on_screen_ms: Optional[int] = None
    navigation_pattern: Optional[str] = None


@dataclass(frozen=True)
class TransactionRecord:
    """A completed or attempted transfer retained in user history."""
    transaction_id: str
    user_id: str
    amount: Decimal
    recipient_name: str
    created_at: datetime = field(default_factory=utc_now)
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", coerce_amount(self.amount, "amount"))
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))


@dataclass(frozen=True)
class DeviceActivitySighting:
    """A device observed in use by a user."""
    user_id: str
    device_id: str
    timestamp: datetime = field(default_factory=utc_now)
    ip_address: Optional[str] = None
    location: Optional[Location] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))


@dataclass(frozen=True)
class BlacklistEntry:
    """Explicit deny-list entry for a user."""
    user_id: str
    reason: str
    added_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class VelocityLimitConfig:
    """Amount ceilings applied to a user's rolling activity."""
    daily_limit: Decimal = Decimal("500000")
    hourly_limit: Decimal = Decimal("100000")
    transaction_limit: Decimal = Decimal("50000")

    def __post_init__(self) -> None:
        for name in ("daily_limit", "hourly_limit", "transaction_limit"):
            value = coerce_amount(getattr(self, name), name, allow_zero=False)
            object.__setattr__(self, name, value)

    def to_dict(self) -> Dict[str, str]:
        return {
            "daily_limit": str(self.daily_limit),
            "hourly_limit": str(self.hourly_limit),
            "transaction_limit": str(self.transaction_limit),
        }


@dataclass(frozen=True)
class TransactionRequest:
    """A proposed transfer submitted for assessment."""
    user_id: str
    amount: Decimal
    recipient_name: str
    created_at: datetime = field(default_factory=utc_now)
    currency: str = DEFAULT_CURRENCY
    device_info: Optional[DeviceInfo] = None
    behavior_metrics: Optional[BehaviorMetrics] = None
    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", coerce_amount(self.amount, "amount", allow_zero=False))
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))

    def to_record(self) -> TransactionRecord:
        """Build the history record for this request once it has been processed."""
        return TransactionRecord(
            transaction_id=self.transaction_id,
            user_id=self.user_id,
            amount=self.amount,
            recipient_name=self.recipient_name,
            created_at=self.created_at,
            currency=self.currency,
        )


@dataclass(frozen=True)
class RiskAssessment:
    """Outcome of a risk evaluation."""
    risk_level: RiskLevel
    score: float
    reason: str
    recommended_action: RiskAction
    indicators: Tuple[FraudIndicator, ...] = ()

    @property
    def blocked(self) -> bool:
        return self.recommended_action == RiskAction.BLOCK

    @property
    def requires_additional_auth(self) -> bool:
        return self.recommended_action == RiskAction.REQUIRE_ADDITIONAL_AUTH

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "risk_level": self.risk_level.value,
            "risk_score": self.score,
            "reason": self.reason,
            "recommended_action": self.recommended_action.value,
            "fraud_indicators": [i.value for i in self.indicators],
        }
