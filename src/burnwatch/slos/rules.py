"""
Multi-window multi-burn-rate (MWMB) rule catalog.

The four standing rules pair a long window with a short window of 1/12 its
length. Durations are expressed on a TimeScale so the same rules work on a
compressed demo clock and on real time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from burnwatch.core.tiers import normalize_tier
from burnwatch.slos.models import AlertSeverity, AlertType, Policy

DEFAULT_MIN_SAMPLES = 20


class RuleKind(str, Enum):
    """Response expected when a rule fires."""

    PAGE = "page"
    TICKET = "ticket"


@dataclass(frozen=True)
class TimeScale:
    """Maps wall-clock durations onto simulated seconds."""

    hour_seconds: float = 60.0

    @classmethod
    def realtime(cls) -> TimeScale:
        return cls(hour_seconds=3600.0)

    def hours(self, h: float) -> float:
        return h * self.hour_seconds

    def minutes(self, m: float) -> float:
        return (m / 60) * self.hour_seconds

    def days(self, d: float) -> float:
        return d * 24 * self.hour_seconds


@dataclass(frozen=True)
class WindowRule:
    """One short/long window pair with its burn threshold."""

    name: AlertType
    short_seconds: float
    long_seconds: float
    threshold: float
    severity: AlertSeverity
    kind: RuleKind
    min_samples: int = DEFAULT_MIN_SAMPLES

    @property
    def label(self) -> str:
        return self.name.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name.value,
            "short_seconds": self.short_seconds,
            "long_seconds": self.long_seconds,
            "threshold": self.threshold,
            "severity": self.severity.value,
            "kind": self.kind.value,
            "min_samples": self.min_samples,
        }


def page_severity(tier: str) -> AlertSeverity:
    """Severity for page-level burn-rate alerts."""
    if normalize_tier(tier) in ("Tier-0", "Tier-1"):
        return AlertSeverity.P0
    return AlertSeverity.P1


def breach_severity(tier: str) -> AlertSeverity:
    """Severity for a plain SLO breach, one step per tier."""
    return {
        "Tier-0": AlertSeverity.P0,
        "Tier-1": AlertSeverity.P1,
        "Tier-2": AlertSeverity.P2,
        "Tier-3": AlertSeverity.P3,
    }[normalize_tier(tier)]


def standard_rules(
    scale: TimeScale | None = None,
    tier: str = "Tier-1",
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> tuple[WindowRule, ...]:
    """
    Build the four standing MWMB rules.

    Args:
        scale: Time scale for window durations (demo scale by default)
        tier: Service tier, decides page severity
        min_samples: Events required in each window before firing

    Returns:
        Rules ordered from fastest to slowest burn
    """
    scale = scale or TimeScale()
    page = page_severity(tier)

    return (
        WindowRule(
            name=AlertType.PAGE_FAST,
            short_seconds=scale.minutes(5),
            long_seconds=scale.hours(1),
            threshold=14.4,
            severity=page,
            kind=RuleKind.PAGE,
            min_samples=min_samples,
        ),
        WindowRule(
            name=AlertType.PAGE_SLOW,
            short_seconds=scale.minutes(30),
            long_seconds=scale.hours(6),
            threshold=6.0,
            severity=page,
            kind=RuleKind.PAGE,
            min_samples=min_samples,
        ),
        WindowRule(
            name=AlertType.TICKET_FAST,
            short_seconds=scale.hours(2),
            long_seconds=scale.hours(24),
            threshold=3.0,
            severity=AlertSeverity.P2,
            kind=RuleKind.TICKET,
            min_samples=min_samples,
        ),
        WindowRule(
            name=AlertType.TICKET_SLOW,
            short_seconds=scale.hours(6),
            long_seconds=scale.days(3),
            threshold=1.0,
            severity=AlertSeverity.P2,
            kind=RuleKind.TICKET,
            min_samples=min_samples,
        ),
    )


def expected_bad_percent(target: float, threshold_multiplier: float) -> float:
    """Bad percentage a window shows exactly at the firing threshold."""
    return (100 - target) * threshold_multiplier


class BurnRatePolicy:
    """
    Policy plus rule catalog.

    ``expected_bad_percent`` is for operator display only; it honours the
    locked target and must never feed a firing decision.
    """

    def __init__(self, policy: Policy, rules: tuple[WindowRule, ...]) -> None:
        self.policy = policy
        self.rules = rules

    def expected_bad_percent(self, threshold_multiplier: float) -> float:
        return expected_bad_percent(self.policy.expected_target, threshold_multiplier)
