"""
Windowed burn-rate calculator.

Slices the event history into rolling windows and computes bad percentage
and burn rate against the error budget of the current policy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from burnwatch.slos.classifier import percentile
from burnwatch.slos.models import Event, Policy, WindowStats

PROMO_EVENT = "add_promo_code"
PROMO_ABUSE_DISCOUNT = 0.5


def good_by_policy(event: Event, policy: Policy) -> bool:
    """
    Judge an event against the *current* policy.

    The event's frozen compliance fields are not consulted, so a policy
    change re-scores every retained event.
    """
    if not event.success:
        return False
    if not policy.bake_sli:
        return True
    return event.latency_ms <= policy.latency_target_ms


def burn_rate(bad_percent: float, error_budget: float) -> float:
    """
    Burn rate as a multiple of the sustainable pace.

    A zero (or negative) budget burns infinitely fast.
    """
    if error_budget <= 0:
        return math.inf
    return bad_percent / error_budget


def slice_window(
    events: Sequence[Event],
    duration_seconds: float,
    now_ms: float,
    policy: Policy,
) -> WindowStats:
    """
    Aggregate the events of one rolling window.

    Args:
        events: Event history, any order
        duration_seconds: Window length
        now_ms: Evaluation time (epoch milliseconds)
        policy: Policy used for good/bad judgement and the error budget

    Returns:
        WindowStats; an empty window has zero bad percent and zero burn
    """
    cutoff = now_ms - duration_seconds * 1000
    window = [e for e in events if e.timestamp_ms >= cutoff]
    total = len(window)
    if total == 0:
        return WindowStats.empty(duration_seconds)

    bad = sum(1 for e in window if not good_by_policy(e, policy))
    bad_percent = 100.0 * bad / total
    return WindowStats(
        duration_seconds=duration_seconds,
        total=total,
        bad_count=bad,
        bad_percent=bad_percent,
        burn=burn_rate(bad_percent, policy.error_budget),
    )


@dataclass(frozen=True)
class DemoWindowSnapshot:
    """Short-window signals used by the non-burn comparison checks."""

    window_seconds: float
    count: int
    availability: float  # percent, NaN when empty
    p95_latency_ms: float  # NaN when empty
    promo_abuse_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_seconds": self.window_seconds,
            "count": self.count,
            "availability": None if math.isnan(self.availability) else self.availability,
            "p95_latency_ms": None if math.isnan(self.p95_latency_ms) else self.p95_latency_ms,
            "promo_abuse_count": self.promo_abuse_count,
        }


class BurnRateCalculator:
    """Calculator for windowed metrics under a fixed policy."""

    def __init__(self, policy: Policy) -> None:
        self.policy = policy

    def window(
        self,
        events: Sequence[Event],
        duration_seconds: float,
        now_ms: float,
    ) -> WindowStats:
        """Stats for one window ending at ``now_ms``."""
        return slice_window(events, duration_seconds, now_ms, self.policy)

    def demo_window(
        self,
        events: Sequence[Event],
        window_seconds: float,
        now_ms: float,
    ) -> DemoWindowSnapshot:
        """
        Availability, p95 latency and promo-abuse count over a short window.

        Events are included when ``now - timestamp <= window``.
        """
        window_ms = window_seconds * 1000
        recent = [e for e in events if now_ms - e.timestamp_ms <= window_ms]
        if recent:
            good = sum(1 for e in recent if good_by_policy(e, self.policy))
            availability = 100.0 * good / len(recent)
        else:
            availability = math.nan

        promo = sum(
            1
            for e in recent
            if e.category == PROMO_EVENT
            and e.success
            and (e.context.get("discount_rate") or 0) >= PROMO_ABUSE_DISCOUNT
        )

        return DemoWindowSnapshot(
            window_seconds=window_seconds,
            count=len(recent),
            availability=availability,
            p95_latency_ms=percentile((e.latency_ms for e in recent), 95),
            promo_abuse_count=promo,
        )
