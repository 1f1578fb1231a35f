"""Tests for slos/models.py.

Tests for the policy value, window stats and alert enums.
"""

import math

import pytest
from burnwatch.core.errors import PolicyValidationError, ValidationError
from burnwatch.slos.models import (
    AlertState,
    AlertType,
    Event,
    Policy,
    WindowStats,
)


class TestPolicyValidation:
    """Tests for Policy write-boundary validation."""

    def test_defaults(self):
        """Default policy is baked with Tier-1 targets."""
        policy = Policy()

        assert policy.bake_sli is True
        assert policy.latency_target_ms == 800.0
        assert policy.availability_target == 99.5
        assert policy.lock_expected is False
        assert policy.locked_target == 99.5

    @pytest.mark.parametrize("latency", [0, -5, math.nan, math.inf])
    def test_rejects_bad_latency_target(self, latency):
        """Non-positive or non-finite latency targets are rejected."""
        with pytest.raises(PolicyValidationError):
            Policy(latency_target_ms=latency)

    @pytest.mark.parametrize("target", [0, -1, 100.01, math.nan])
    def test_rejects_bad_availability_target(self, target):
        """Availability target must be in (0, 100]."""
        with pytest.raises(PolicyValidationError):
            Policy(availability_target=target)

    def test_accepts_hundred_percent(self):
        """A 100% target is valid and leaves a zero budget."""
        policy = Policy(availability_target=100)

        assert policy.error_budget == 0

    def test_validation_error_hierarchy(self):
        """Policy errors are validation errors."""
        with pytest.raises(ValidationError) as exc_info:
            Policy(latency_target_ms=-1)

        assert exc_info.value.details == {"latency_target_ms": -1}

    def test_rejects_bad_locked_target(self):
        """Locked target shares the availability range."""
        with pytest.raises(PolicyValidationError):
            Policy(lock_expected=True, locked_target=150)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("locked_target", "99"),
            ("availability_target", "99.9"),
            ("latency_target_ms", True),
            ("availability_target", True),
            ("locked_target", True),
        ],
    )
    def test_rejects_non_numeric_values(self, field, value):
        """Strings and booleans are rejected at the write boundary."""
        with pytest.raises(PolicyValidationError):
            Policy(lock_expected=True, **{field: value})


class TestPolicyUpdates:
    """Tests for Policy.with_updates()."""

    def test_error_budget(self):
        """Error budget is 100 minus the target."""
        assert Policy(availability_target=99.9).error_budget == pytest.approx(0.1)

    def test_update_returns_new_value(self):
        """Updates never mutate the original policy."""
        policy = Policy()
        updated = policy.with_updates(bake_sli=False)

        assert policy.bake_sli is True
        assert updated.bake_sli is False

    def test_update_validates(self):
        """Invalid updates raise at the write boundary."""
        with pytest.raises(PolicyValidationError):
            Policy().with_updates(latency_target_ms=0)

    def test_unknown_field_rejected(self):
        """Typos are not silently ignored."""
        with pytest.raises(PolicyValidationError):
            Policy().with_updates(latency=100)

    def test_unlocked_target_follows_availability(self):
        """While unlocked, the locked target tracks the live target."""
        policy = Policy(availability_target=99.9).with_updates(availability_target=99.0)

        assert policy.locked_target == 99.0
        assert policy.expected_target == 99.0

    def test_locking_freezes_current_target(self):
        """Turning the lock on freezes the target in effect."""
        policy = Policy(availability_target=99.9).with_updates(lock_expected=True)
        policy = policy.with_updates(availability_target=99.0)

        assert policy.locked_target == 99.9
        assert policy.expected_target == 99.9
        assert policy.availability_target == 99.0

    def test_unlocking_tracks_live_target_again(self):
        """Turning the lock off makes expected follow the live target."""
        policy = Policy(availability_target=99.9).with_updates(lock_expected=True)
        policy = policy.with_updates(availability_target=99.0)
        policy = policy.with_updates(lock_expected=False)

        assert policy.expected_target == 99.0
        assert policy.locked_target == 99.0

    def test_explicit_locked_target(self):
        """An explicit locked target wins over the snapshot."""
        policy = Policy(availability_target=99.9).with_updates(
            lock_expected=True, locked_target=99.5
        )

        assert policy.expected_target == 99.5

    def test_to_dict(self):
        """Policy serializes every field plus the budget."""
        result = Policy(availability_target=99.9).to_dict()

        assert result["availability_target"] == 99.9
        assert result["error_budget"] == pytest.approx(0.1)
        assert set(result) == {
            "bake_sli",
            "latency_target_ms",
            "availability_target",
            "error_budget",
            "lock_expected",
            "locked_target",
        }


class TestWindowStats:
    """Tests for WindowStats."""

    def test_empty(self):
        """Empty windows report zeros, not NaN."""
        stats = WindowStats.empty(60)

        assert stats.total == 0
        assert stats.bad_percent == 0
        assert stats.burn == 0

    def test_to_dict_keeps_infinity(self):
        """Infinite burn survives serialization."""
        stats = WindowStats(60, 10, 1, 10.0, math.inf)

        assert math.isinf(stats.to_dict()["burn"])


class TestEvent:
    """Tests for Event."""

    def test_to_dict_lists_violations(self):
        """Export uses plain lists for violations."""
        event = Event(
            id="e1",
            timestamp_ms=1,
            success=True,
            latency_ms=500,
            category="page_view",
            origin="on-frontend",
            context={},
            is_slo_compliant=False,
            slo_violations=("latency",),
            slo_thresholds={"latency_ms": 200},
        )

        data = event.to_dict()

        assert data["slo_violations"] == ["latency"]
        assert data["is_slo_compliant"] is False
        assert data["slo_thresholds"] == {"latency_ms": 200}


class TestAlertEnums:
    """Tests for alert type and state enums."""

    def test_rule_labels(self):
        """Burn-rate alert types carry the rule label."""
        assert AlertType.PAGE_FAST.value == "Page: 1h & 5m @14.4x"
        assert AlertType.TICKET_SLOW.value == "Ticket: 3d & 6h @1x"

    def test_page_flags(self):
        """Only the two page rules are page-level."""
        pages = {t for t in AlertType if t.is_page}

        assert pages == {AlertType.PAGE_FAST, AlertType.PAGE_SLOW}

    def test_burn_rate_flags(self):
        """Demo checks are not burn-rate alerts."""
        assert AlertType.TICKET_FAST.is_burn_rate is True
        assert AlertType.SATURATION.is_burn_rate is False

    def test_state_values(self):
        """Lifecycle states."""
        assert [s.value for s in AlertState] == ["open", "acknowledged", "resolved"]
