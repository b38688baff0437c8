"""
Risk scoring engine.

Runs a single assessment through:

    BLACKLIST_CHECK -> (blacklisted: done) -> EVALUATE_SIGNALS -> AGGREGATE -> CLASSIFY

Blocking is returned as data (``recommended_action=BLOCK``), never raised.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from riskgate.activity_store import ActivityStore
from riskgate.blacklist import BlacklistRegistry
from riskgate.constants import MAX_SCORE, MIN_SCORE, LevelThresholds
from riskgate.exceptions import RiskEngineError
from riskgate.models import (
    FraudIndicator,
    RiskAction,
    RiskAssessment,
    RiskLevel,
    TransactionRequest,
)
from riskgate.signals import HistorySnapshot, SignalEvaluator, default_evaluators
from riskgate.velocity import VelocityLimiter

logger = logging.getLogger(__name__)


_ACTIONS = {
    RiskLevel.CRITICAL: RiskAction.BLOCK,
    RiskLevel.HIGH: RiskAction.REQUIRE_ADDITIONAL_AUTH,
    RiskLevel.MEDIUM: RiskAction.MONITOR,
    RiskLevel.LOW: RiskAction.ALLOW,
}


def classify_score(score: Decimal) -> RiskLevel:
    """Map a score to its risk level using inclusive lower bounds."""
    if score >= LevelThresholds.CRITICAL:
        return RiskLevel.CRITICAL
    elif score >= LevelThresholds.HIGH:
        return RiskLevel.HIGH
    elif score >= LevelThresholds.MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def action_for_level(level: RiskLevel) -> RiskAction:
    return _ACTIONS[level]


def build_reason(indicators: Sequence[FraudIndicator]) -> str:
    """Human-readable summary of the indicators, in the order they fired."""
    if not indicators:
        return "No risk factors detected"
    if len(indicators) == 1:
        return f"Risk factor: {indicators[0].value}"
    return f"Multiple risk factors: {', '.join(i.value for i in indicators)}"


def clamp_score(score: Decimal) -> Decimal:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def assessment_from_score(
    score: Decimal,
    indicators: Iterable[FraudIndicator] = (),
    reason: Optional[str] = None,
) -> RiskAssessment:
    """Build an assessment whose level and action are derived from the score."""
    score = clamp_score(score)
    indicators = tuple(indicators)
    level = classify_score(score)
    return RiskAssessment(
        risk_level=level,
        score=float(score),
        reason=reason if reason is not None else build_reason(indicators),
        recommended_action=action_for_level(level),
        indicators=indicators,
    )


BLACKLISTED_ASSESSMENT = RiskAssessment(
    risk_level=RiskLevel.CRITICAL,
    score=1.0,
    reason="User is blacklisted",
    recommended_action=RiskAction.BLOCK,
    indicators=(FraudIndicator.BLACKLISTED_USER,),
)

INVALID_USER_ASSESSMENT = RiskAssessment(
    risk_level=RiskLevel.CRITICAL,
    score=1.0,
    reason="Missing user identifier",
    recommended_action=RiskAction.BLOCK,
    indicators=(FraudIndicator.INVALID_USER,),
)


class RiskScoringEngine:
    """
    Main risk scoring engine.

    Combines the blacklist short-circuit with the signal evaluators and
    classifies the aggregated score. The engine only reads shared state.
    """

    def __init__(
        self,
        store: ActivityStore,
        blacklist: BlacklistRegistry,
        limiter: VelocityLimiter,
        evaluators: Optional[List[SignalEvaluator]] = None,
    ):
        self._store = store
        self._blacklist = blacklist
        self.evaluators = evaluators if evaluators is not None else default_evaluators(limiter)

    def evaluate(self, request: TransactionRequest) -> RiskAssessment:
        """
        Assess a transaction request.

        Args:
            request: Transaction being assessed

        Returns:
            RiskAssessment; never raises for high-risk outcomes

        Raises:
            RiskEngineError: A required evaluator failed
        """
        user_id = request.user_id
        if not user_id or not user_id.strip():
            logger.warning("Risk assessment requested without a user identifier")
            return INVALID_USER_ASSESSMENT

        if self._blacklist.contains(user_id):
            logger.warning("Blocked blacklisted user %s", user_id)
            return BLACKLISTED_ASSESSMENT

        history = self._snapshot(request)

        total = Decimal("0")
        indicators: List[FraudIndicator] = []
        for evaluator in self.evaluators:
            if not evaluator.applies_to(request):
                continue
            try:
                result = evaluator.evaluate(request, history)
            except Exception as exc:
                if not evaluator.optional:
                    raise RiskEngineError(
                        f"Signal evaluator {evaluator.name} failed",
                        error_code="SIGNAL_EVALUATION_FAILED",
                        details={"evaluator": evaluator.name, "transaction_id": request.transaction_id},
                    ) from exc
                logger.exception("Optional signal evaluator %s failed; treating as neutral", evaluator.name)
                continue
            total += result.score
            indicators.extend(result.indicators)

        assessment = assessment_from_score(total, indicators)

        logger.info(
            "Risk assessment for %s: level=%s, score=%.2f, action=%s, indicators=%s",
            request.transaction_id,
            assessment.risk_level.value,
            assessment.score,
            assessment.recommended_action.value,
            ",".join(i.value for i in assessment.indicators) or "-",
        )
        return assessment

    def _snapshot(self, request: TransactionRequest) -> HistorySnapshot:
        device_info = request.device_info
        sightings = self._store.all_sightings(device_info.device_id) if device_info else []
        return HistorySnapshot(
            transactions=self._store.all_transactions(request.user_id),
            device_sightings=sightings,
        )
