"""
Bounded in-memory activity history.

Keeps the most recent transactions per user and device sightings per device.
Each history is a ``deque`` with ``maxlen`` so appending past the cap evicts
the oldest entry in the same step. Reads copy under the lock, giving callers
a snapshot that later appends cannot change.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from datetime import datetime
from typing import Deque, Dict, List, Optional

from riskgate.constants import DEFAULT_MAX_HISTORY
from riskgate.models import DeviceActivitySighting, TransactionRecord, ensure_utc

logger = logging.getLogger(__name__)


class ActivityStore:
    """Per-user transaction history and per-device sighting history."""

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self._max_history = max_history
        self._transactions: Dict[str, Deque[TransactionRecord]] = defaultdict(self._new_history)
        self._sightings: Dict[str, Deque[DeviceActivitySighting]] = defaultdict(self._new_history)
        self._lock = threading.Lock()

    def _new_history(self) -> deque:
        return deque(maxlen=self._max_history)

    @property
    def max_history(self) -> int:
        return self._max_history

    def append_transaction(self, user_id: str, record: TransactionRecord) -> None:
        """Append a record to the user's history, evicting the oldest past the cap."""
        with self._lock:
            history = self._transactions[user_id]
            evicted = len(history) == self._max_history
            history.append(record)
        if evicted:
            logger.debug("Evicted oldest transaction for user %s", user_id)

    def append_device_sighting(self, device_id: str, sighting: DeviceActivitySighting) -> None:
        """Append a sighting to the device's history, evicting the oldest past the cap."""
        with self._lock:
            self._sightings[device_id].append(sighting)

    def transactions_since(self, user_id: str, since: datetime) -> List[TransactionRecord]:
        """Records for ``user_id`` created at or after ``since``."""
        since = ensure_utc(since)
        return [r for r in self.all_transactions(user_id) if r.created_at >= since]

    def sightings_since(self, device_id: str, since: datetime) -> List[DeviceActivitySighting]:
        """Sightings for ``device_id`` at or after ``since``."""
        since = ensure_utc(since)
        return [s for s in self.all_sightings(device_id) if s.timestamp >= since]

    def all_transactions(self, user_id: str) -> List[TransactionRecord]:
        """Snapshot of the user's capped history in insertion order."""
        with self._lock:
            history: Optional[Deque[TransactionRecord]] = self._transactions.get(user_id)
            return list(history) if history else []

    def all_sightings(self, device_id: str) -> List[DeviceActivitySighting]:
        """Snapshot of the device's capped history in insertion order."""
        with self._lock:
            history = self._sightings.get(device_id)
            return list(history) if history else []

    def transaction_count(self, user_id: str) -> int:
        with self._lock:
            history = self._transactions.get(user_id)
            return len(history) if history else 0

    def clear(self) -> None:
        """Drop all history."""
        with self._lock:
            self._transactions.clear()
            self._sightings.clear()
