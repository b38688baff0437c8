"""
Risk signal evaluators.

Each evaluator maps a transaction request and a history snapshot to a partial
score bounded by the evaluator's cap, plus the indicators that fired.
Evaluators are independent of each other; their run order only fixes the
order indicators appear in.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Sequence, Tuple

from riskgate.constants import Caps, Thresholds, Weights
from riskgate.models import (
    DeviceActivitySighting,
    DeviceTrust,
    FraudIndicator,
    TransactionRecord,
    TransactionRequest,
)
from riskgate.velocity import VelocityLimiter, VelocityStatus


@dataclass(frozen=True)
class HistorySnapshot:
    """History read once per assessment and shared by all evaluators."""
    transactions: Sequence[TransactionRecord] = ()
    device_sightings: Sequence[DeviceActivitySighting] = ()


@dataclass(frozen=True)
class SignalResult:
    """Partial score and the indicators that produced it."""
    score: Decimal = Decimal("0")
    indicators: Tuple[FraudIndicator, ...] = field(default_factory=tuple)

    @classmethod
    def clear(cls) -> "SignalResult":
        return cls()

    @classmethod
    def of(cls, score: Decimal, *indicators: FraudIndicator) -> "SignalResult":
        return cls(score=score, indicators=tuple(indicators))


class SignalEvaluator(ABC):
    """Abstract interface for risk signal evaluators."""

    cap: Decimal = Decimal("0")
    # Failures of optional evaluators degrade to a neutral score
    optional: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Evaluator name."""

    def applies_to(self, request: TransactionRequest) -> bool:
        """Whether the evaluator has the inputs it needs for this request."""
        return True

    @abstractmethod
    def evaluate(
        self,
        request: TransactionRequest,
        history: HistorySnapshot,
    ) -> SignalResult:
        """
        Score a request.

        Args:
            request: Transaction being assessed
            history: Snapshot of the user's and device's history

        Returns:
            SignalResult with ``0 <= score <= cap``
        """


class AmountEvaluator(SignalEvaluator):
    """Scores the magnitude of the transfer."""

    cap = Caps.AMOUNT

    def __init__(
        self,
        high_threshold: Decimal = Thresholds.HIGH_AMOUNT,
        medium_threshold: Decimal = Thresholds.MEDIUM_AMOUNT,
    ):
        self.high_threshold = high_threshold
        self.medium_threshold = medium_threshold

    @property
    def name(self) -> str:
        return "amount"

    def evaluate(self, request: TransactionRequest, history: HistorySnapshot) -> SignalResult:
        if request.amount >= self.high_threshold:
            return SignalResult.of(Weights.HIGH_AMOUNT, FraudIndicator.HIGH_AMOUNT)
        if request.amount >= self.medium_threshold:
            return SignalResult.of(Weights.MEDIUM_AMOUNT, FraudIndicator.MEDIUM_AMOUNT)
        return SignalResult.clear()


class VelocityEvaluator(SignalEvaluator):
    """Delegates to the velocity limiter over the snapshot, using the request time as "now"."""

    cap = Caps.VELOCITY

    def __init__(self, limiter: VelocityLimiter):
        self._limiter = limiter

    @property
    def name(self) -> str:
        return "velocity"

    def evaluate(self, request: TransactionRequest, history: HistorySnapshot) -> SignalResult:
        outcome = self._limiter.check_limits(
            request.user_id,
            request.amount,
            request.created_at,
            transactions=history.transactions,
        )
        if outcome.status == VelocityStatus.DAILY_EXCEEDED:
            return SignalResult.of(Weights.HIGH_VELOCITY, FraudIndicator.HIGH_VELOCITY)
        if outcome.status == VelocityStatus.HOURLY_FREQUENCY_EXCEEDED:
            return SignalResult.of(Weights.FREQUENT_TRANSACTIONS, FraudIndicator.FREQUENT_TRANSACTIONS)
        return SignalResult.clear()


class DeviceEvaluator(SignalEvaluator):
    """
    Scores the device the request came from.

    A device shared by many users overrides the new-device score rather than
    adding to it. A device reported as compromised raises the output to the
    cap; an unknown trust signal is neutral.
    """

    cap = Caps.DEVICE
    optional = True

    def __init__(self, shared_user_threshold: int = Thresholds.SHARED_DEVICE_USERS):
        self.shared_user_threshold = shared_user_threshold

    @property
    def name(self) -> str:
        return "device"

    def applies_to(self, request: TransactionRequest) -> bool:
        return request.device_info is not None

    def evaluate(self, request: TransactionRequest, history: HistorySnapshot) -> SignalResult:
        sightings = history.device_sightings
        indicators: List[FraudIndicator] = []
        score = Decimal("0")

        if not sightings:
            score = Weights.NEW_DEVICE
            indicators.append(FraudIndicator.NEW_DEVICE)
        elif len({s.user_id for s in sightings}) > self.shared_user_threshold:
            score = Weights.SHARED_DEVICE
            indicators.append(FraudIndicator.SHARED_DEVICE)

        device_info = request.device_info
        if device_info is not None and device_info.trust == DeviceTrust.COMPROMISED:
            score = self.cap
            indicators.append(FraudIndicator.COMPROMISED_DEVICE)

        return SignalResult(score=min(score, self.cap), indicators=tuple(indicators))


class TimeOfDayEvaluator(SignalEvaluator):
    """Flags transfers made in the early hours (UTC)."""

    cap = Caps.TIME_OF_DAY

    def __init__(
        self,
        start_hour: int = Thresholds.UNUSUAL_HOUR_START,
        end_hour: int = Thresholds.UNUSUAL_HOUR_END,
    ):
        self.start_hour = start_hour
        self.end_hour = end_hour

    @property
    def name(self) -> str:
        return "time_of_day"

    def evaluate(self, request: TransactionRequest, history: HistorySnapshot) -> SignalResult:
        if self.start_hour <= request.created_at.hour <= self.end_hour:
            return SignalResult.of(Weights.UNUSUAL_TIME, FraudIndicator.UNUSUAL_TIME)
        return SignalResult.clear()


class BehavioralEvaluator(SignalEvaluator):
    """
    Compares the request with the user's own history.

    A user with no history scores NEW_USER only. Otherwise the amount is
    compared to the historical mean and the recipient to past recipients;
    the two sub-signals add up but the evaluator total is capped.
    """

    cap = Caps.BEHAVIORAL

    @property
    def name(self) -> str:
        return "behavioral"

    def evaluate(self, request: TransactionRequest, history: HistorySnapshot) -> SignalResult:
        transactions = history.transactions
        if not transactions:
            return SignalResult.of(Weights.NEW_USER, FraudIndicator.NEW_USER)

        indicators: List[FraudIndicator] = []
        score = Decimal("0")

        mean = sum((r.amount for r in transactions), Decimal("0")) / len(transactions)
        if request.amount > mean * Thresholds.DEVIATION_MULTIPLIER:
            score += Weights.AMOUNT_DEVIATION
            indicators.append(FraudIndicator.AMOUNT_DEVIATION)
        elif request.amount > mean * Thresholds.ANOMALY_MULTIPLIER:
            score += Weights.AMOUNT_ANOMALY
            indicators.append(FraudIndicator.AMOUNT_ANOMALY)

        known_recipients = {r.recipient_name for r in transactions}
        if request.recipient_name not in known_recipients:
            score += Weights.NEW_RECIPIENT
            indicators.append(FraudIndicator.NEW_RECIPIENT)

        return SignalResult(score=min(score, self.cap), indicators=tuple(indicators))


def default_evaluators(limiter: VelocityLimiter) -> List[SignalEvaluator]:
    """Evaluators in their reporting order."""
    return [
        AmountEvaluator(),
        VelocityEvaluator(limiter),
        DeviceEvaluator(),
        TimeOfDayEvaluator(),
        BehavioralEvaluator(),
    ]
