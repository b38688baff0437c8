"""Transaction risk assessment exports."""

from .activity_store import ActivityStore
from .blacklist import BlacklistRegistry
from .config import RiskSettings, load_settings
from .engine import RiskScoringEngine, action_for_level, build_reason, classify_score
from .exceptions import (
    RiskEngineError,
    RiskValidationError,
    TransactionBlockedError,
    ensure_allowed,
)
from .logging_config import configure_logging, transaction_context
from .models import (
    BehaviorMetrics,
    BlacklistEntry,
    DeviceActivitySighting,
    DeviceInfo,
    DeviceTrust,
    FraudIndicator,
    Location,
    RiskAction,
    RiskAssessment,
    RiskLevel,
    TransactionRecord,
    TransactionRequest,
    VelocityLimitConfig,
)
from .service import RiskAssessmentService, create_risk_service
from .signals import (
    AmountEvaluator,
    BehavioralEvaluator,
    DeviceEvaluator,
    HistorySnapshot,
    SignalEvaluator,
    SignalResult,
    TimeOfDayEvaluator,
    VelocityEvaluator,
)
from .velocity import VelocityLimiter, VelocityOutcome, VelocityStatus

__all__ = [
    # Service
    "RiskAssessmentService",
    "create_risk_service",
    # Engine
    "RiskScoringEngine",
    "classify_score",
    "action_for_level",
    "build_reason",
    # State
    "ActivityStore",
    "BlacklistRegistry",
    "VelocityLimiter",
    "VelocityOutcome",
    "VelocityStatus",
    # Signals
    "SignalEvaluator",
    "SignalResult",
    "HistorySnapshot",
    "AmountEvaluator",
    "VelocityEvaluator",
    "DeviceEvaluator",
    "TimeOfDayEvaluator",
    "BehavioralEvaluator",
    # Models
    "BehaviorMetrics",
    "BlacklistEntry",
    "DeviceActivitySighting",
    "DeviceInfo",
    "DeviceTrust",
    "FraudIndicator",
    "Location",
    "RiskAction",
    "RiskAssessment",
    "RiskLevel",
    "TransactionRecord",
    "TransactionRequest",
    "VelocityLimitConfig",
    # Config & logging
    "RiskSettings",
    "load_settings",
    "configure_logging",
    "transaction_context",
    # Errors
    "RiskEngineError",
    "RiskValidationError",
    "TransactionBlockedError",
    "ensure_allowed",
]
