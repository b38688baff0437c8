"""
Tests for the risk signal evaluators.

Tests cover:
- Amount tiers
- Velocity delegation
- Device novelty, sharing and trust
- Unusual hours
- Behavioral deviation, recipient novelty and the evaluator cap
"""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from riskgate.models import DeviceInfo, DeviceTrust, FraudIndicator
from riskgate.signals import (
    AmountEvaluator,
    BehavioralEvaluator,
    DeviceEvaluator,
    HistorySnapshot,
    SignalResult,
    TimeOfDayEvaluator,
    VelocityEvaluator,
    default_evaluators,
)


EMPTY = HistorySnapshot()


class TestAmountEvaluator:
    """Tests for AmountEvaluator."""

    @pytest.mark.parametrize(
        "amount,score,indicators",
        [
            ("99999", "0", ()),
            ("100000", "0.2", (FraudIndicator.MEDIUM_AMOUNT,)),
            ("499999", "0.2", (FraudIndicator.MEDIUM_AMOUNT,)),
            ("500000", "0.4", (FraudIndicator.HIGH_AMOUNT,)),
            ("10000000", "0.4", (FraudIndicator.HIGH_AMOUNT,)),
        ],
    )
    def test_tiers(self, make_request, amount, score, indicators):
        """Should score amount tiers with inclusive thresholds."""
        result = AmountEvaluator().evaluate(make_request(amount=amount), EMPTY)
        assert result.score == Decimal(score)
        assert result.indicators == indicators

    def test_name(self):
        assert AmountEvaluator().name == "amount"


class TestVelocityEvaluator:
    """Tests for VelocityEvaluator."""

    def test_within_limits(self, limiter, make_request):
        """Should add nothing when limits hold."""
        result = VelocityEvaluator(limiter).evaluate(make_request(amount="1000"), EMPTY)
        assert result == SignalResult.clear()

    def test_daily_exceeded(self, limiter, make_request):
        """Should flag HIGH_VELOCITY when the daily limit is breached."""
        result = VelocityEvaluator(limiter).evaluate(make_request(amount="600000"), EMPTY)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.HIGH_VELOCITY,)

    def _burst(self, make_record, now, count=11):
        return HistorySnapshot(
            transactions=[make_record(amount="10", created_at=now - timedelta(minutes=20)) for _ in range(count)]
        )

    def test_hourly_frequency(self, limiter, make_record, make_request, now):
        """Should flag FREQUENT_TRANSACTIONS for bursts."""
        result = VelocityEvaluator(limiter).evaluate(make_request(amount="10"), self._burst(make_record, now))
        assert result.score == Decimal("0.2")
        assert result.indicators == (FraudIndicator.FREQUENT_TRANSACTIONS,)

    def test_uses_request_time(self, limiter, make_record, make_request, now):
        """Should evaluate windows relative to the request timestamp."""
        later = make_request(amount="10", created_at=now + timedelta(hours=2))
        assert VelocityEvaluator(limiter).evaluate(later, self._burst(make_record, now)) == SignalResult.clear()

    def test_reads_snapshot_not_store(self, store, limiter, make_record, make_request, now):
        """Should score the history it is given, not the live store."""
        for record in self._burst(make_record, now).transactions:
            store.append_transaction("user_1", record)

        result = VelocityEvaluator(limiter).evaluate(make_request(amount="10"), EMPTY)

        assert result == SignalResult.clear()


class TestDeviceEvaluator:
    """Tests for DeviceEvaluator."""

    def _history(self, make_sighting, users):
        return HistorySnapshot(device_sightings=[make_sighting(u) for u in users])

    def test_not_applicable_without_device(self, make_request):
        """Should skip requests with no device info."""
        assert not DeviceEvaluator().applies_to(make_request())

    def test_new_device(self, make_request):
        """Should flag a device with no sightings."""
        request = make_request(device_info=DeviceInfo(device_id="device_1"))
        result = DeviceEvaluator().evaluate(request, EMPTY)
        assert result.score == Decimal("0.2")
        assert result.indicators == (FraudIndicator.NEW_DEVICE,)

    def test_known_device(self, make_request, make_sighting):
        """Should add nothing for a device seen by a few users."""
        request = make_request(device_info=DeviceInfo(device_id="device_1"))
        history = self._history(make_sighting, ["user_1", "user_2", "user_3", "user_1"])
        assert DeviceEvaluator().evaluate(request, history) == SignalResult.clear()

    def test_shared_device(self, make_request, make_sighting):
        """Should flag a device used by more than three distinct users."""
        request = make_request(device_info=DeviceInfo(device_id="device_1"))
        history = self._history(make_sighting, ["a", "b", "c", "d"])
        result = DeviceEvaluator().evaluate(request, history)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.SHARED_DEVICE,)

    def test_compromised_device_raises_to_cap(self, make_request, make_sighting):
        """Should report a compromised device at the evaluator cap."""
        request = make_request(device_info=DeviceInfo(device_id="device_1", trust=DeviceTrust.COMPROMISED))
        history = self._history(make_sighting, ["user_1"])
        result = DeviceEvaluator().evaluate(request, history)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.COMPROMISED_DEVICE,)

    def test_compromised_new_device(self, make_request):
        """Should keep both indicators but stay within the cap."""
        request = make_request(device_info=DeviceInfo(device_id="device_1", trust=DeviceTrust.COMPROMISED))
        result = DeviceEvaluator().evaluate(request, EMPTY)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.NEW_DEVICE, FraudIndicator.COMPROMISED_DEVICE)

    def test_trusted_device_is_neutral(self, make_request, make_sighting):
        """Should not lower the score for trusted devices."""
        request = make_request(device_info=DeviceInfo(device_id="device_1", trust=DeviceTrust.TRUSTED))
        result = DeviceEvaluator().evaluate(request, EMPTY)
        assert result.indicators == (FraudIndicator.NEW_DEVICE,)


class TestTimeOfDayEvaluator:
    """Tests for TimeOfDayEvaluator."""

    @pytest.mark.parametrize("hour,flagged", [(1, False), (2, True), (4, True), (6, True), (7, False), (14, False)])
    def test_unusual_hours(self, make_request, now, hour, flagged):
        """Should flag hours 2 through 6 inclusive."""
        request = make_request(created_at=now.replace(hour=hour, minute=59))
        result = TimeOfDayEvaluator().evaluate(request, EMPTY)
        if flagged:
            assert result.score == Decimal("0.2")
            assert result.indicators == (FraudIndicator.UNUSUAL_TIME,)
        else:
            assert result == SignalResult.clear()


class TestBehavioralEvaluator:
    """Tests for BehavioralEvaluator."""

    def _history(self, make_record, amounts, recipient="Asha Traders"):
        return HistorySnapshot(transactions=[make_record(amount=a, recipient_name=recipient) for a in amounts])

    def test_new_user(self, make_request):
        """Should flag users with no history."""
        result = BehavioralEvaluator().evaluate(make_request(), EMPTY)
        assert result.score == Decimal("0.1")
        assert result.indicators == (FraudIndicator.NEW_USER,)

    def test_typical_transaction(self, make_request, make_record):
        """Should add nothing for a usual amount to a known recipient."""
        history = self._history(make_record, ["1000", "1000"])
        result = BehavioralEvaluator().evaluate(make_request(amount="1200"), history)
        assert result == SignalResult.clear()

    def test_amount_deviation(self, make_request, make_record):
        """Should flag amounts above ten times the mean."""
        history = self._history(make_record, ["500", "1500"])
        result = BehavioralEvaluator().evaluate(make_request(amount="10001"), history)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.AMOUNT_DEVIATION,)

    def test_amount_anomaly(self, make_request, make_record):
        """Should flag amounts between five and ten times the mean."""
        history = self._history(make_record, ["1000"])
        result = BehavioralEvaluator().evaluate(make_request(amount="6000"), history)
        assert result.score == Decimal("0.2")
        assert result.indicators == (FraudIndicator.AMOUNT_ANOMALY,)

    def test_multiplier_boundaries_exclusive(self, make_request, make_record):
        """Should not flag exactly five or ten times the mean."""
        history = self._history(make_record, ["1000"])
        evaluator = BehavioralEvaluator()
        assert evaluator.evaluate(make_request(amount="5000"), history).indicators == ()
        assert evaluator.evaluate(make_request(amount="10000"), history).indicators == (
            FraudIndicator.AMOUNT_ANOMALY,
        )

    def test_new_recipient(self, make_request, make_record):
        """Should flag recipients absent from history."""
        history = self._history(make_record, ["1000"])
        result = BehavioralEvaluator().evaluate(make_request(amount="100", recipient_name="Someone Else"), history)
        assert result.score == Decimal("0.1")
        assert result.indicators == (FraudIndicator.NEW_RECIPIENT,)

    def test_sub_signals_add(self, make_request, make_record):
        """Should add anomaly and recipient novelty."""
        history = self._history(make_record, ["1000"])
        result = BehavioralEvaluator().evaluate(make_request(amount="6000", recipient_name="Someone Else"), history)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.AMOUNT_ANOMALY, FraudIndicator.NEW_RECIPIENT)

    def test_total_is_capped(self, make_request, make_record):
        """Should cap deviation plus new recipient at 0.3."""
        history = self._history(make_record, ["1000"])
        result = BehavioralEvaluator().evaluate(make_request(amount="20000", recipient_name="Someone Else"), history)
        assert result.score == Decimal("0.3")
        assert result.indicators == (FraudIndicator.AMOUNT_DEVIATION, FraudIndicator.NEW_RECIPIENT)


class TestDefaultEvaluators:
    """Tests for the default evaluator set."""

    def test_order(self, limiter):
        """Should run evaluators in reporting order."""
        names = [e.name for e in default_evaluators(limiter)]
        assert names == ["amount", "velocity", "device", "time_of_day", "behavioral"]

    def test_caps(self, limiter):
        """Should expose each evaluator's cap."""
        caps = {e.name: e.cap for e in default_evaluators(limiter)}
        assert caps == {
            "amount": Decimal("0.4"),
            "velocity": Decimal("0.3"),
            "device": Decimal("0.3"),
            "time_of_day": Decimal("0.2"),
            "behavioral": Decimal("0.3"),
        }
