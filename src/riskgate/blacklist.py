"""Explicit user deny-list."""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from riskgate.models import BlacklistEntry

logger = logging.getLogger(__name__)


class BlacklistRegistry:
    """
    Thread-safe registry of blacklisted users.

    ``add`` and ``remove`` are idempotent; a blacklisted user short-circuits
    scoring to maximum risk.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, BlacklistEntry] = {}
        self._lock = threading.Lock()

    def add(self, user_id: str, reason: str) -> BlacklistEntry:
        """Blacklist a user, replacing the reason and timestamp if already present."""
        entry = BlacklistEntry(user_id=user_id, reason=reason)
        with self._lock:
            self._entries[user_id] = entry
        logger.info("Blacklisted user %s: %s", user_id, reason)
        return entry

    def remove(self, user_id: str) -> None:
        with self._lock:
            removed = self._entries.pop(user_id, None)
        if removed is not None:
            logger.info("Removed user %s from blacklist", user_id)

    def contains(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._entries

    def get(self, user_id: str) -> Optional[BlacklistEntry]:
        with self._lock:
            return self._entries.get(user_id)

    def entries(self) -> List[BlacklistEntry]:
        with self._lock:
            return list(self._entries.values())

    def __contains__(self, user_id: object) -> bool:
        return isinstance(user_id, str) and self.contains(user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
