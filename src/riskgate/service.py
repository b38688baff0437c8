"""
Risk assessment service.

Public facade consumed by the payment orchestrator. ``analyze`` and the
standalone checks only read shared state;
the record/blacklist/limit methods are the only writers.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

from riskgate.activity_store import ActivityStore
from riskgate.blacklist import BlacklistRegistry
from riskgate.config import RiskSettings, load_settings
from riskgate.constants import StandaloneScores, Thresholds, Weights
from riskgate.engine import RiskScoringEngine, assessment_from_score
from riskgate.exceptions import require_identifier
from riskgate.logging_config import configure_logging, transaction_context
from riskgate.models import (
    BlacklistEntry,
    DeviceActivitySighting,
    DeviceInfo,
    FraudIndicator,
    RiskAssessment,
    TransactionRecord,
    TransactionRequest,
    VelocityLimitConfig,
    ensure_utc,
    utc_now,
)
from riskgate.velocity import VelocityLimiter, VelocityStatus

logger = logging.getLogger(__name__)


class RiskAssessmentService:
    """
    Fraud risk assessment for proposed transfers.

    Example:
        service = create_risk_service()

        assessment = service.analyze(request)
        if assessment.blocked:
            ...  # reject with a policy-violation error

        # once the transfer outcome is known
        service.record_transaction(request.to_record())
    """

    def __init__(
        self,
        store: Optional[ActivityStore] = None,
        blacklist: Optional[BlacklistRegistry] = None,
        limiter: Optional[VelocityLimiter] = None,
        engine: Optional[RiskScoringEngine] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store if store is not None else ActivityStore()
        self.blacklist_registry = blacklist if blacklist is not None else BlacklistRegistry()
        self.limiter = limiter if limiter is not None else VelocityLimiter(self.store)
        if engine is None:
            engine = RiskScoringEngine(self.store, self.blacklist_registry, self.limiter)
        self.engine = engine
        self._clock = clock

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    # -------------------------------------------------------------------------
    # Assessment
    # -------------------------------------------------------------------------

    def analyze(self, request: TransactionRequest) -> RiskAssessment:
        """Assess a transaction request without modifying any history."""
        device_id = request.device_info.device_id if request.device_info else None
        with transaction_context(
            user_id=request.user_id,
            transaction_id=request.transaction_id,
            device_id=device_id,
        ):
            return self.engine.evaluate(request)

    def check_velocity_standalone(self, user_id: str) -> RiskAssessment:
        """
        Velocity-only check for out-of-band monitoring.

        Evaluated at the current time with no candidate amount, so it reports
        on activity already recorded for the user.
        """
        outcome = self.limiter.check_limits(user_id, Decimal("0"), self._now())

        if outcome.status == VelocityStatus.DAILY_EXCEEDED:
            return assessment_from_score(
                StandaloneScores.DAILY_LIMIT_EXCEEDED,
                [FraudIndicator.DAILY_LIMIT_EXCEEDED],
                reason="Daily transaction limit exceeded",
            )
        if outcome.status == VelocityStatus.HOURLY_FREQUENCY_EXCEEDED:
            return assessment_from_score(
                StandaloneScores.HIGH_FREQUENCY,
                [FraudIndicator.HIGH_FREQUENCY_TRANSACTIONS],
                reason="Too many transactions in short time",
            )
        return assessment_from_score(
            StandaloneScores.VELOCITY_OK,
            reason="Velocity checks passed",
        )

    def validate_device(self, device_id: str) -> RiskAssessment:
        """Standalone device fingerprint check over the device's recent activity."""
        if not self.store.all_sightings(device_id):
            return assessment_from_score(
                StandaloneScores.NEW_DEVICE,
                [FraudIndicator.NEW_DEVICE],
                reason="New device detected",
            )

        day_ago = self._now() - timedelta(hours=Thresholds.DAILY_WINDOW_HOURS)
        recent_users = {s.user_id for s in self.store.sightings_since(device_id, day_ago)}
        if len(recent_users) > Thresholds.SUSPICIOUS_DEVICE_USERS_24H:
            return assessment_from_score(
                StandaloneScores.SUSPICIOUS_DEVICE,
                [FraudIndicator.SHARED_DEVICE_SUSPICIOUS],
                reason="Device used by multiple users",
            )

        return assessment_from_score(
            StandaloneScores.DEVICE_OK,
            reason="Device fingerprint validated",
        )

    def analyze_user_behavior(self, user_id: str, request: TransactionRequest) -> RiskAssessment:
        """
        Standalone behavioral check against ``user_id``'s own history.

        Unlike the behavioral evaluator used by ``analyze``, the time signal
        flags hours the user has never transacted in, and the sub-signals add
        up without a cap.
        """
        history = self.store.all_transactions(user_id)
        indicators: List[FraudIndicator] = []
        score = Decimal("0")

        if history:
            mean = sum((r.amount for r in history), Decimal("0")) / len(history)
            if request.amount > mean * Thresholds.DEVIATION_MULTIPLIER:
                score += Weights.AMOUNT_DEVIATION
                indicators.append(FraudIndicator.AMOUNT_DEVIATION)

            usual_hours = {r.created_at.hour for r in history}
            if request.created_at.hour not in usual_hours:
                score += Weights.UNUSUAL_TIME
                indicators.append(FraudIndicator.UNUSUAL_TIME)

        if request.recipient_name not in {r.recipient_name for r in history}:
            score += Weights.NEW_RECIPIENT
            indicators.append(FraudIndicator.NEW_RECIPIENT)

        return assessment_from_score(score, indicators, reason="Behavioral analysis completed")

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def record_transaction(self, record: TransactionRecord) -> None:
        """Record a transaction once its outcome is known."""
        require_identifier(record.user_id, "user_id")
        self.store.append_transaction(record.user_id, record)
        logger.debug("Recorded transaction %s for user %s", record.transaction_id, record.user_id)

    def record_device_activity(
        self,
        user_id: str,
        device_info: DeviceInfo,
        timestamp: Optional[datetime] = None,
    ) -> DeviceActivitySighting:
        """Record that ``user_id`` used the given device."""
        require_identifier(user_id, "user_id")
        require_identifier(device_info.device_id, "device_id")
        sighting = DeviceActivitySighting(
            user_id=user_id,
            device_id=device_info.device_id,
            timestamp=timestamp or self._now(),
            ip_address=device_info.ip_address,
            location=device_info.location,
        )
        self.store.append_device_sighting(device_info.device_id, sighting)
        return sighting

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def blacklist(self, user_id: str, reason: str) -> BlacklistEntry:
        require_identifier(user_id, "user_id")
        return self.blacklist_registry.add(user_id, reason)

    def unblacklist(self, user_id: str) -> None:
        self.blacklist_registry.remove(user_id)

    def is_blacklisted(self, user_id: str) -> bool:
        return self.blacklist_registry.contains(user_id)

    def set_velocity_limits(self, user_id: str, limits: VelocityLimitConfig) -> None:
        require_identifier(user_id, "user_id")
        self.limiter.set_limits(user_id, limits)

    def clear_velocity_limits(self, user_id: str) -> None:
        self.limiter.clear_limits(user_id)


def create_risk_service(
    settings: Optional[RiskSettings] = None,
    clock: Callable[[], datetime] = utc_now,
    setup_logs: bool = False,
) -> RiskAssessmentService:
    """Factory function wiring a service from settings."""
    settings = settings or load_settings()
    if setup_logs:
        configure_logging(level=settings.log_level, json_format=settings.log_json)
    store = ActivityStore(max_history=settings.max_history_per_key)
    limiter = VelocityLimiter(store, default_limits=settings.velocity_limits())
    return RiskAssessmentService(store=store, limiter=limiter, clock=clock)
