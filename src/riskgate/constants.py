"""
Scoring constants for the risk engine.

Weights are Decimal so that sums of partial scores land exactly on the
classification thresholds.

Usage:
    from riskgate.constants import Weights, Thresholds, LevelThresholds
"""
from __future__ import annotations

from decimal import Decimal
from typing import Final


# =============================================================================
# Partial score weights
# =============================================================================

class Weights:
    """Partial scores contributed by each indicator."""

    HIGH_AMOUNT: Final[Decimal] = Decimal("0.4")
    MEDIUM_AMOUNT: Final[Decimal] = Decimal("0.2")

    HIGH_VELOCITY: Final[Decimal] = Decimal("0.3")
    FREQUENT_TRANSACTIONS: Final[Decimal] = Decimal("0.2")

    NEW_DEVICE: Final[Decimal] = Decimal("0.2")
    SHARED_DEVICE: Final[Decimal] = Decimal("0.3")

    UNUSUAL_TIME: Final[Decimal] = Decimal("0.2")

    AMOUNT_DEVIATION: Final[Decimal] = Decimal("0.3")
    AMOUNT_ANOMALY: Final[Decimal] = Decimal("0.2")
    NEW_RECIPIENT: Final[Decimal] = Decimal("0.1")
    NEW_USER: Final[Decimal] = Decimal("0.1")


class Caps:
    """Maximum output of each evaluator."""

    AMOUNT: Final[Decimal] = Decimal("0.4")
    VELOCITY: Final[Decimal] = Decimal("0.3")
    DEVICE: Final[Decimal] = Decimal("0.3")
    TIME_OF_DAY: Final[Decimal] = Decimal("0.2")
    BEHAVIORAL: Final[Decimal] = Decimal("0.3")


# =============================================================================
# Signal thresholds
# =============================================================================

class Thresholds:
    """Trigger points for the signal evaluators."""

    # Minor units
    HIGH_AMOUNT: Final[Decimal] = Decimal("500000")
    MEDIUM_AMOUNT: Final[Decimal] = Decimal("100000")

    HOURLY_TRANSACTION_COUNT: Final[int] = 10
    SHARED_DEVICE_USERS: Final[int] = 3
    # Standalone device validation looks at a trailing 24h window
    SUSPICIOUS_DEVICE_USERS_24H: Final[int] = 5

    # Inclusive UTC hours
    UNUSUAL_HOUR_START: Final[int] = 2
    UNUSUAL_HOUR_END: Final[int] = 6

    DEVIATION_MULTIPLIER: Final[Decimal] = Decimal("10")
    ANOMALY_MULTIPLIER: Final[Decimal] = Decimal("5")

    DAILY_WINDOW_HOURS: Final[int] = 24
    HOURLY_WINDOW_HOURS: Final[int] = 1


class LevelThresholds:
    """Inclusive lower bounds of each risk level."""

    CRITICAL: Final[Decimal] = Decimal("0.8")
    HIGH: Final[Decimal] = Decimal("0.6")
    MEDIUM: Final[Decimal] = Decimal("0.4")


class StandaloneScores:
    """Fixed scores reported by the out-of-band monitoring checks."""

    DAILY_LIMIT_EXCEEDED: Final[Decimal] = Decimal("0.8")
    HIGH_FREQUENCY: Final[Decimal] = Decimal("0.7")
    VELOCITY_OK: Final[Decimal] = Decimal("0.1")

    NEW_DEVICE: Final[Decimal] = Decimal("0.5")
    SUSPICIOUS_DEVICE: Final[Decimal] = Decimal("0.9")
    DEVICE_OK: Final[Decimal] = Decimal("0.1")


MAX_SCORE: Final[Decimal] = Decimal("1")
MIN_SCORE: Final[Decimal] = Decimal("0")
DEFAULT_MAX_HISTORY: Final[int] = 1000
