"""Tests for slos/calculator.py.

Tests for policy-based goodness, window slicing and burn-rate math.
"""

import math

import pytest
from burnwatch.slos.calculator import (
    BurnRateCalculator,
    burn_rate,
    good_by_policy,
    slice_window,
)
from burnwatch.slos.classifier import classify
from burnwatch.slos.models import EventCandidate, Policy

NOW = 1_700_000_000_000


def _event(latency_ms=100.0, success=True, age_seconds=0.0, policy=None, **kwargs):
    candidate = EventCandidate(
        success=success,
        latency_ms=latency_ms,
        timestamp_ms=NOW - int(age_seconds * 1000),
        **kwargs,
    )
    return classify(candidate, policy or Policy(latency_target_ms=200))


class TestGoodByPolicy:
    """Tests for good_by_policy()."""

    def test_baked_slow_success_is_bad(self):
        """Under a baked SLI a slow success is bad."""
        policy = Policy(bake_sli=True, latency_target_ms=200)

        assert good_by_policy(_event(400), policy) is False
        assert good_by_policy(_event(100), policy) is True

    def test_non_baked_only_success_matters(self):
        """Without baking, any success is good."""
        policy = Policy(bake_sli=False, latency_target_ms=200)

        assert good_by_policy(_event(400), policy) is True
        assert good_by_policy(_event(100), policy) is True

    def test_failure_is_always_bad(self):
        """A failed event is bad under every policy."""
        event = _event(10, success=False)

        assert good_by_policy(event, Policy(bake_sli=True)) is False
        assert good_by_policy(event, Policy(bake_sli=False)) is False

    def test_uses_live_target_not_frozen_compliance(self):
        """Goodness is re-evaluated against the current target."""
        event = _event(400, policy=Policy(latency_target_ms=200))
        assert event.is_slo_compliant is False

        assert good_by_policy(event, Policy(latency_target_ms=500)) is True


class TestBurnRate:
    """Tests for burn_rate()."""

    def test_ratio(self):
        """Burn is bad percent over budget."""
        assert burn_rate(10, 0.5) == pytest.approx(20)

    def test_zero_budget_is_infinite(self):
        """A zero budget burns infinitely fast."""
        assert math.isinf(burn_rate(0.5, 0))

    def test_negative_budget_is_infinite(self):
        """A negative budget is treated like a zero budget."""
        assert math.isinf(burn_rate(1, -0.1))


class TestSliceWindow:
    """Tests for slice_window()."""

    def test_empty_history(self, policy):
        """An empty history gives zeros, not NaN or infinity."""
        stats = slice_window([], 300, NOW, policy)

        assert (stats.total, stats.bad_percent, stats.burn) == (0, 0, 0)

    def test_empty_window_with_zero_budget(self):
        """No data means no burn even when the budget is zero."""
        stats = slice_window([], 300, NOW, Policy(availability_target=100))

        assert stats.burn == 0

    def test_zero_budget_with_data_is_infinite(self):
        """Any data against a zero budget burns infinitely."""
        stats = slice_window([_event(10)], 300, NOW, Policy(availability_target=100))

        assert math.isinf(stats.burn)

    def test_filters_by_cutoff(self, policy):
        """Only events at or after now - duration are included."""
        events = [
            _event(age_seconds=0),
            _event(age_seconds=60),
            _event(age_seconds=120),
            _event(age_seconds=121),
        ]

        stats = slice_window(events, 120, NOW, policy)

        assert stats.total == 3

    def test_bad_percent_and_burn(self, policy):
        """One bad event in ten at a 0.1% budget burns 100x."""
        events = [_event(100) for _ in range(9)] + [_event(100, success=False)]

        stats = slice_window(events, 60, NOW, policy)

        assert stats.total == 10
        assert stats.bad_count == 1
        assert stats.bad_percent == pytest.approx(10)
        assert stats.burn == pytest.approx(100)

    def test_policy_change_rescores_history(self):
        """Toggling bake changes bad percent for the same events."""
        events = [_event(400) for _ in range(4)]

        baked = slice_window(events, 60, NOW, Policy(bake_sli=True, latency_target_ms=200))
        plain = slice_window(events, 60, NOW, Policy(bake_sli=False, latency_target_ms=200))

        assert baked.bad_percent == 100
        assert plain.bad_percent == 0

    def test_all_bad(self, policy):
        """All-bad windows at a 0.1% budget burn 1000x."""
        events = [_event(10, success=False) for _ in range(25)]

        stats = slice_window(events, 60, NOW, policy)

        assert stats.bad_percent == 100
        assert stats.burn == pytest.approx(1000)


class TestBurnRateCalculator:
    """Tests for BurnRateCalculator."""

    def test_window_delegates(self, policy):
        """window() matches slice_window()."""
        events = [_event(10, success=False), _event(10)]
        calculator = BurnRateCalculator(policy)

        assert calculator.window(events, 60, NOW) == slice_window(events, 60, NOW, policy)

    def test_demo_window_empty(self, policy):
        """Empty demo windows report NaN availability and latency."""
        snapshot = BurnRateCalculator(policy).demo_window([], 60, NOW)

        assert snapshot.count == 0
        assert math.isnan(snapshot.availability)
        assert math.isnan(snapshot.p95_latency_ms)
        assert snapshot.to_dict()["availability"] is None

    def test_demo_window_metrics(self, policy):
        """Availability and p95 over the demo window."""
        events = [_event(float(ms)) for ms in range(1, 101)]
        events.append(_event(50, age_seconds=61))

        snapshot = BurnRateCalculator(policy).demo_window(events, 60, NOW)

        assert snapshot.count == 100
        assert snapshot.availability == pytest.approx(100)
        assert snapshot.p95_latency_ms == 95

    def test_demo_window_boundary_inclusive(self, policy):
        """An event exactly one window old is included."""
        snapshot = BurnRateCalculator(policy).demo_window([_event(age_seconds=60)], 60, NOW)

        assert snapshot.count == 1

    def test_promo_abuse_count(self, policy):
        """Only successful promo events with >= 50% discount count."""
        events = [
            _event(category="add_promo_code", context={"discount_rate": 0.5}),
            _event(category="add_promo_code", context={"discount_rate": 0.9}),
            _event(category="add_promo_code", context={"discount_rate": 0.1}),
            _event(category="add_promo_code", context={}),
            _event(category="add_promo_code", success=False, context={"discount_rate": 0.7}),
            _event(category="add_to_cart", context={"discount_rate": 0.7}),
        ]

        snapshot = BurnRateCalculator(policy).demo_window(events, 60, NOW)

        assert snapshot.promo_abuse_count == 2
