"""
Pytest configuration for riskgate tests.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

# Add package source to path
package_src = Path(__file__).parent.parent / "src"
if str(package_src) not in sys.path:
    sys.path.insert(0, str(package_src))

os.environ.setdefault("RISKGATE_ENVIRONMENT", "dev")

from riskgate.activity_store import ActivityStore  # noqa: E402
from riskgate.blacklist import BlacklistRegistry  # noqa: E402
from riskgate.engine import RiskScoringEngine  # noqa: E402
from riskgate.models import (  # noqa: E402
    DeviceActivitySighting,
    DeviceInfo,
    TransactionRecord,
    TransactionRequest,
)
from riskgate.service import RiskAssessmentService  # noqa: E402
from riskgate.velocity import VelocityLimiter  # noqa: E402


# Mid-afternoon UTC, outside the unusual-hours window
BASE_TIME = datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return BASE_TIME


@pytest.fixture
def store():
    return ActivityStore()


@pytest.fixture
def blacklist():
    return BlacklistRegistry()


@pytest.fixture
def limiter(store):
    return VelocityLimiter(store)


@pytest.fixture
def engine(store, blacklist, limiter):
    return RiskScoringEngine(store, blacklist, limiter)


@pytest.fixture
def service(store, blacklist, limiter, engine):
    return RiskAssessmentService(
        store=store,
        blacklist=blacklist,
        limiter=limiter,
        engine=engine,
        clock=lambda: BASE_TIME,
    )


@pytest.fixture
def make_request():
    """Factory for transaction requests with sensible defaults."""
    def _make(
        user_id: str = "user_1",
        amount="50000",
        recipient_name: str = "Asha Traders",
        created_at: datetime = BASE_TIME,
        device_info: DeviceInfo | None = None,
        **kwargs,
    ) -> TransactionRequest:
        return TransactionRequest(
            user_id=user_id,
            amount=Decimal(str(amount)),
            recipient_name=recipient_name,
            created_at=created_at,
            device_info=device_info,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_record():
    """Factory for history records."""
    counter = {"n": 0}

    def _make(
        user_id: str = "user_1",
        amount="1000",
        recipient_name: str = "Asha Traders",
        created_at: datetime = BASE_TIME - timedelta(days=2),
        transaction_id: str | None = None,
    ) -> TransactionRecord:
        counter["n"] += 1
        return TransactionRecord(
            transaction_id=transaction_id or f"txn_{counter['n']}",
            user_id=user_id,
            amount=Decimal(str(amount)),
            recipient_name=recipient_name,
            created_at=created_at,
        )
    return _make


@pytest.fixture
def make_sighting():
    """Factory for device sightings."""
    def _make(
        user_id: str,
        device_id: str = "device_1",
        timestamp: datetime = BASE_TIME - timedelta(hours=2),
    ) -> DeviceActivitySighting:
        return DeviceActivitySighting(user_id=user_id, device_id=device_id, timestamp=timestamp)
    return _make
