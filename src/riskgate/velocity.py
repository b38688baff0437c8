"""
Velocity limits over rolling time windows.

Windows are trailing (``now - 24h``, ``now - 1h``) rather than calendar
aligned. Amount sums use Decimal arithmetic.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence

from riskgate.activity_store import ActivityStore
from riskgate.constants import Thresholds
from riskgate.models import TransactionRecord, VelocityLimitConfig, ensure_utc

logger = logging.getLogger(__name__)


class VelocityStatus(str, Enum):
    """Kind of velocity outcome."""
    WITHIN_LIMITS = "within_limits"
    DAILY_EXCEEDED = "daily_exceeded"
    HOURLY_FREQUENCY_EXCEEDED = "hourly_frequency_exceeded"


@dataclass(frozen=True)
class VelocityOutcome:
    """Result of a velocity check."""
    status: VelocityStatus
    daily_total: Decimal = Decimal("0")
    daily_limit: Optional[Decimal] = None
    hourly_count: int = 0

    @property
    def within_limits(self) -> bool:
        return self.status == VelocityStatus.WITHIN_LIMITS


class VelocityLimiter:
    """
    Evaluates a user's recent activity against configured ceilings.

    Per-user overrides take precedence over the default config. Overrides are
    held in an immutable mapping that is swapped under a lock on write, so
    readers never take the lock.
    """

    def __init__(
        self,
        store: ActivityStore,
        default_limits: Optional[VelocityLimitConfig] = None,
        hourly_count_threshold: int = Thresholds.HOURLY_TRANSACTION_COUNT,
    ):
        self._store = store
        self._default_limits = default_limits or VelocityLimitConfig()
        self._hourly_count_threshold = hourly_count_threshold
        self._overrides: Mapping[str, VelocityLimitConfig] = MappingProxyType({})
        self._write_lock = threading.Lock()

    @property
    def default_limits(self) -> VelocityLimitConfig:
        return self._default_limits

    def limits_for(self, user_id: str) -> VelocityLimitConfig:
        """Effective limits for a user."""
        return self._overrides.get(user_id, self._default_limits)

    def set_limits(self, user_id: str, limits: VelocityLimitConfig) -> None:
        """Install a per-user override."""
        with self._write_lock:
            updated: Dict[str, VelocityLimitConfig] = dict(self._overrides)
            updated[user_id] = limits
            self._overrides = MappingProxyType(updated)
        logger.info("Velocity limits for user %s set to %s", user_id, limits.to_dict())

    def clear_limits(self, user_id: str) -> None:
        """Remove a per-user override, falling back to the default."""
        with self._write_lock:
            if user_id not in self._overrides:
                return
            updated = dict(self._overrides)
            del updated[user_id]
            self._overrides = MappingProxyType(updated)
        logger.info("Velocity limits for user %s reset to default", user_id)

    def check_limits(
        self,
        user_id: str,
        candidate_amount: Decimal,
        now: datetime,
        transactions: Optional[Sequence[TransactionRecord]] = None,
    ) -> VelocityOutcome:
        """
        Check the candidate amount against the user's rolling windows.

        Args:
            user_id: User whose history is evaluated
            candidate_amount: Amount of the transaction being assessed
            now: Reference time for the trailing windows
            transactions: History to evaluate; read from the store when omitted

        Returns:
            VelocityOutcome; the daily amount check takes precedence over
            the hourly frequency check
        """
        now = ensure_utc(now)
        limits = self.limits_for(user_id)

        day_ago = now - timedelta(hours=Thresholds.DAILY_WINDOW_HOURS)
        if transactions is None:
            daily = self._store.transactions_since(user_id, day_ago)
        else:
            daily = [r for r in transactions if r.created_at >= day_ago]
        daily_total = sum((r.amount for r in daily), Decimal("0")) + Decimal(candidate_amount)

        if daily_total > limits.daily_limit:
            logger.debug(
                "User %s daily total %s exceeds limit %s",
                user_id, daily_total, limits.daily_limit,
            )
            return VelocityOutcome(
                status=VelocityStatus.DAILY_EXCEEDED,
                daily_total=daily_total,
                daily_limit=limits.daily_limit,
            )

        hour_ago = now - timedelta(hours=Thresholds.HOURLY_WINDOW_HOURS)
        hourly_count = sum(1 for r in daily if r.created_at >= hour_ago)

        if hourly_count > self._hourly_count_threshold:
            logger.debug("User %s made %d transactions in the last hour", user_id, hourly_count)
            return VelocityOutcome(
                status=VelocityStatus.HOURLY_FREQUENCY_EXCEEDED,
                daily_total=daily_total,
                daily_limit=limits.daily_limit,
                hourly_count=hourly_count,
            )

        return VelocityOutcome(
            status=VelocityStatus.WITHIN_LIMITS,
            daily_total=daily_total,
            daily_limit=limits.daily_limit,
            hourly_count=hourly_count,
        )
