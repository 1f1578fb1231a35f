"""
SLO data models.

Events are frozen once classified; the policy is an immutable value that is
replaced wholesale on every operator write.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any

from burnwatch.core.errors import PolicyValidationError

LATENCY_VIOLATION = "latency"


def new_id() -> str:
    """Generate a fresh identifier for events and alerts."""
    return uuid.uuid4().hex


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class AlertSeverity(str, Enum):
    """Incident priority attached to an alert."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class AlertType(str, Enum):
    """Alert types: one per burn-rate rule plus the demo comparison checks."""

    PAGE_FAST = "Page: 1h & 5m @14.4x"
    PAGE_SLOW = "Page: 6h & 30m @6x"
    TICKET_FAST = "Ticket: 24h & 2h @3x"
    TICKET_SLOW = "Ticket: 3d & 6h @1x"
    SLO_BREACH = "SLO Breach (demo)"
    LATENCY_P95 = "Latency p95 (demo)"
    SATURATION = "Saturation (demo)"
    BUSINESS_METRIC = "Business Metric (demo)"

    @property
    def is_page(self) -> bool:
        return self in (AlertType.PAGE_FAST, AlertType.PAGE_SLOW)

    @property
    def is_burn_rate(self) -> bool:
        return self in (
            AlertType.PAGE_FAST,
            AlertType.PAGE_SLOW,
            AlertType.TICKET_FAST,
            AlertType.TICKET_SLOW,
        )


class AlertState(str, Enum):
    """Alert lifecycle state."""

    OPEN = "open"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class EventCandidate:
    """A raw business event handed over by an event source."""

    success: bool
    latency_ms: float
    timestamp_ms: int
    category: str = "submit_payment"
    origin: str = "on-frontend"
    context: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class Event:
    """
    A classified business event.

    ``is_slo_compliant`` and ``slo_violations`` are computed once, against the
    latency target in effect at classification time, and never change.
    """

    id: str
    timestamp_ms: int
    success: bool
    latency_ms: float
    category: str
    origin: str
    context: dict[str, Any]
    is_slo_compliant: bool
    slo_violations: tuple[str, ...]
    slo_thresholds: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        data = asdict(self)
        data["slo_violations"] = list(self.slo_violations)
        return data


@dataclass(frozen=True)
class Policy:
    """
    Operator-controlled goodness and budget policy.

    Attributes:
        bake_sli: Fold the latency target into good/bad judgement
        latency_target_ms: Per-event latency ceiling
        availability_target: SLO target percentage in (0, 100]
        lock_expected: Freeze the target used for expected-bad displays
        locked_target: Target used for expected-bad displays when locked
    """

    bake_sli: bool = True
    latency_target_ms: float = 800.0
    availability_target: float = 99.5
    lock_expected: bool = False
    locked_target: float | None = None

    def __post_init__(self) -> None:
        if not _is_number(self.latency_target_ms) or not (
            self.latency_target_ms > 0 and math.isfinite(self.latency_target_ms)
        ):
            raise PolicyValidationError(
                "Latency target must be a positive number",
                {"latency_target_ms": self.latency_target_ms},
            )
        if not _is_number(self.availability_target) or not (
            0 < self.availability_target <= 100
        ):
            raise PolicyValidationError(
                "Availability target must be in (0, 100]",
                {"availability_target": self.availability_target},
            )
        if self.locked_target is None:
            object.__setattr__(self, "locked_target", self.availability_target)
        elif not _is_number(self.locked_target) or not 0 < self.locked_target <= 100:
            raise PolicyValidationError(
                "Locked target must be in (0, 100]",
                {"locked_target": self.locked_target},
            )

    @property
    def error_budget(self) -> float:
        """Allowed bad percentage (100 - availability target)."""
        return 100.0 - self.availability_target

    @property
    def expected_target(self) -> float:
        """Target used for expected-bad displays (never for firing)."""
        if self.lock_expected:
            return self.locked_target  # type: ignore[return-value]
        return self.availability_target

    def with_updates(self, **changes: Any) -> Policy:
        """
        Return a validated copy with ``changes`` applied.

        While unlocked the locked target tracks the live availability target;
        switching the lock on freezes the availability target in effect at
        that moment unless ``locked_target`` is passed explicitly.
        """
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise PolicyValidationError(
                "Unknown policy fields", {"fields": ",".join(sorted(unknown))}
            )

        lock = changes.get("lock_expected", self.lock_expected)
        if "locked_target" not in changes:
            if not lock:
                changes["locked_target"] = changes.get(
                    "availability_target", self.availability_target
                )
            elif not self.lock_expected:
                changes["locked_target"] = self.availability_target
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API/CLI output."""
        return {
            "bake_sli": self.bake_sli,
            "latency_target_ms": self.latency_target_ms,
            "availability_target": self.availability_target,
            "error_budget": round(self.error_budget, 6),
            "lock_expected": self.lock_expected,
            "locked_target": self.locked_target,
        }


@dataclass(frozen=True)
class WindowStats:
    """Aggregate of one rolling window."""

    duration_seconds: float
    total: int
    bad_count: int
    bad_percent: float
    burn: float

    @classmethod
    def empty(cls, duration_seconds: float) -> WindowStats:
        return cls(
            duration_seconds=duration_seconds,
            total=0,
            bad_count=0,
            bad_percent=0.0,
            burn=0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_seconds": self.duration_seconds,
            "total": self.total,
            "bad_count": self.bad_count,
            "bad_percent": round(self.bad_percent, 4),
            "burn": self.burn if math.isinf(self.burn) else round(self.burn, 4),
        }
