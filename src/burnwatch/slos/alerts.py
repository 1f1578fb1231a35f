"""
Alert evaluation and lifecycle tracking.

Evaluates the MWMB rules (plus the non-burn demo comparison checks) against
the event history and records firings in an in-memory alert store that
deduplicates by alert type.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import structlog

from burnwatch.core.tiers import get_tier_config
from burnwatch.slos.calculator import BurnRateCalculator, DemoWindowSnapshot
from burnwatch.slos.models import (
    AlertSeverity,
    AlertState,
    AlertType,
    Event,
    Policy,
    new_id,
)
from burnwatch.slos.rules import WindowRule, breach_severity

logger = structlog.get_logger()

# Demo comparison check floors (events in the demo window)
SLO_BREACH_MIN_EVENTS = 50
LATENCY_P95_MIN_EVENTS = 30
SATURATION_MIN_EVENTS = 10
SATURATION_CPU_PERCENT = 85.0
PROMO_ABUSE_MAX_EVENTS = 200


@dataclass(frozen=True)
class AlertCandidate:
    """A firing produced by one evaluation pass, before deduplication."""

    type: AlertType
    severity: AlertSeverity
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class Alert:
    """A recorded alert occurrence."""

    id: str
    type: AlertType
    severity: AlertSeverity
    message: str
    created_at_ms: int
    acknowledged_at_ms: int | None = None
    resolved_at_ms: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> AlertState:
        if self.resolved_at_ms is not None:
            return AlertState.RESOLVED
        if self.acknowledged_at_ms is not None:
            return AlertState.ACKNOWLEDGED
        return AlertState.OPEN

    @property
    def is_open(self) -> bool:
        """True until resolved (acknowledged alerts are still open)."""
        return self.resolved_at_ms is None

    def mtta_ms(self) -> int | None:
        if self.acknowledged_at_ms is None:
            return None
        return self.acknowledged_at_ms - self.created_at_ms

    def mttr_ms(self) -> int | None:
        if self.resolved_at_ms is None:
            return None
        return self.resolved_at_ms - self.created_at_ms

    def acknowledged_within(self, minutes: float) -> bool:
        tta = self.mtta_ms()
        return tta is not None and tta <= minutes * 60_000

    def resolved_within(self, minutes: float) -> bool:
        ttr = self.mttr_ms()
        return ttr is not None and ttr <= minutes * 60_000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "state": self.state.value,
            "message": self.message,
            "created_at_ms": self.created_at_ms,
            "acknowledged_at_ms": self.acknowledged_at_ms,
            "resolved_at_ms": self.resolved_at_ms,
            "details": self.details,
        }


def _fmt_pct(value: float, digits: int = 2) -> str:
    if not math.isfinite(value):
        return "–"
    return f"{value:.{digits}f}%"


def _fmt_ms(value: float) -> str:
    if not math.isfinite(value):
        return "–"
    return f"{round(value)} ms"


class AlertEvaluator:
    """Evaluates burn-rate rules and demo checks against event history."""

    def __init__(
        self,
        rules: Sequence[WindowRule],
        demo_window_seconds: float = 60.0,
    ) -> None:
        self.rules = tuple(rules)
        self.demo_window_seconds = demo_window_seconds

    def evaluate_rule(
        self,
        rule: WindowRule,
        calculator: BurnRateCalculator,
        events: Sequence[Event],
        now_ms: float,
    ) -> AlertCandidate | None:
        """
        Evaluate one MWMB rule.

        Fires only when both windows burn at or above the threshold and both
        hold more than ``rule.min_samples`` events.
        """
        short = calculator.window(events, rule.short_seconds, now_ms)
        long = calculator.window(events, rule.long_seconds, now_ms)

        firing = (
            short.burn >= rule.threshold
            and long.burn >= rule.threshold
            and short.total > rule.min_samples
            and long.total > rule.min_samples
        )
        if not firing:
            return None

        bake = calculator.policy.bake_sli
        message = (
            f"Burn ≥ {rule.threshold:g}x in short "
            f"({round(rule.short_seconds)}s: {short.burn:.1f}x) AND long "
            f"({round(rule.long_seconds)}s: {long.burn:.1f}x) windows "
            f"(SLI baked={str(bake).lower()})"
        )
        return AlertCandidate(
            type=rule.name,
            severity=rule.severity,
            message=message,
            details={
                "short": short.to_dict(),
                "long": long.to_dict(),
                "threshold": rule.threshold,
                "bake_sli": bake,
            },
        )

    def evaluate_demo_checks(
        self,
        snapshot: DemoWindowSnapshot,
        policy: Policy,
        tier: str,
        saturation_percent: float,
        check_availability: bool = True,
        check_latency: bool = True,
    ) -> list[AlertCandidate]:
        """Non-burn comparison checks over the short demo window."""
        candidates: list[AlertCandidate] = []

        if (
            check_availability
            and snapshot.count > SLO_BREACH_MIN_EVENTS
            and snapshot.availability < policy.availability_target
        ):
            candidates.append(
                AlertCandidate(
                    type=AlertType.SLO_BREACH,
                    severity=breach_severity(tier),
                    message=(
                        f"Availability {_fmt_pct(snapshot.availability)} < SLO "
                        f"{_fmt_pct(policy.availability_target)} (non-burn comparison)"
                    ),
                    details={"availability": snapshot.availability},
                )
            )

        if (
            check_latency
            and snapshot.count > LATENCY_P95_MIN_EVENTS
            and snapshot.p95_latency_ms > policy.latency_target_ms
        ):
            candidates.append(
                AlertCandidate(
                    type=AlertType.LATENCY_P95,
                    severity=AlertSeverity.P2,
                    message=(
                        f"p95 {_fmt_ms(snapshot.p95_latency_ms)} > target "
                        f"{_fmt_ms(policy.latency_target_ms)} (non-burn comparison)"
                    ),
                    details={"p95_latency_ms": snapshot.p95_latency_ms},
                )
            )

        if saturation_percent > SATURATION_CPU_PERCENT and snapshot.count > SATURATION_MIN_EVENTS:
            candidates.append(
                AlertCandidate(
                    type=AlertType.SATURATION,
                    severity=AlertSeverity.P2,
                    message=f"CPU {saturation_percent:.0f}% nearing capacity (non-burn comparison)",
                    details={"cpu_percent": saturation_percent},
                )
            )

        if snapshot.promo_abuse_count > PROMO_ABUSE_MAX_EVENTS:
            window = round(snapshot.window_seconds)
            candidates.append(
                AlertCandidate(
                    type=AlertType.BUSINESS_METRIC,
                    severity=AlertSeverity.P1,
                    message=(
                        f"High-rate usage of ≥50% discount "
                        f"({snapshot.promo_abuse_count} / {window}s) (non-burn comparison)"
                    ),
                    details={"promo_abuse_count": snapshot.promo_abuse_count},
                )
            )

        return candidates

    def evaluate(
        self,
        events: Sequence[Event],
        policy: Policy,
        now_ms: float,
        tier: str = "Tier-1",
        saturation_percent: float = 0.0,
        check_availability: bool = True,
        check_latency: bool = True,
    ) -> list[AlertCandidate]:
        """
        Run every rule and demo check once.

        Args:
            events: Consistent snapshot of the event history
            policy: Live policy (never the locked display target)
            now_ms: Evaluation time
            tier: Service tier, decides SLO breach severity
            saturation_percent: Current CPU saturation signal
            check_availability: Whether the availability SLI is enabled
            check_latency: Whether the latency SLI is enabled

        Returns:
            Candidate alerts in rule order, demo checks last
        """
        calculator = BurnRateCalculator(policy)
        candidates: list[AlertCandidate] = []

        for rule in self.rules:
            candidate = self.evaluate_rule(rule, calculator, events, now_ms)
            if candidate:
                candidates.append(candidate)

        snapshot = calculator.demo_window(events, self.demo_window_seconds, now_ms)
        candidates.extend(
            self.evaluate_demo_checks(
                snapshot,
                policy,
                tier,
                saturation_percent,
                check_availability=check_availability,
                check_latency=check_latency,
            )
        )
        return candidates


class AlertStore:
    """In-memory alert history, newest first, deduplicated by open type."""

    def __init__(self) -> None:
        self._alerts: list[Alert] = []

    @property
    def alerts(self) -> list[Alert]:
        """All alerts, newest first."""
        return list(self._alerts)

    def open_alerts(self) -> list[Alert]:
        return [a for a in self._alerts if a.is_open]

    def open_types(self) -> set[AlertType]:
        return {a.type for a in self._alerts if a.is_open}

    def get(self, alert_id: str) -> Alert | None:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    def add_candidates(
        self,
        candidates: Iterable[AlertCandidate],
        now_ms: int,
    ) -> list[Alert]:
        """
        Record candidates whose type has no open alert.

        Returns:
            Newly created alerts (empty when everything was suppressed)
        """
        open_types = self.open_types()
        created: list[Alert] = []

        for candidate in candidates:
            if candidate.type in open_types:
                logger.debug("alert_suppressed", alert_type=candidate.type.value)
                continue
            open_types.add(candidate.type)
            alert = Alert(
                id=new_id(),
                type=candidate.type,
                severity=candidate.severity,
                message=candidate.message,
                created_at_ms=now_ms,
                details=dict(candidate.details),
            )
            created.append(alert)
            logger.info(
                "alert_fired",
                alert_id=alert.id,
                alert_type=alert.type.value,
                severity=alert.severity.value,
            )

        if created:
            self._alerts = created + self._alerts
        return created

    def acknowledge(self, alert_id: str, now_ms: int) -> Alert | None:
        """Set the acknowledgement time once. Unknown ids are ignored."""
        alert = self.get(alert_id)
        if alert is None or alert.acknowledged_at_ms is not None:
            return alert
        alert.acknowledged_at_ms = now_ms
        logger.info("alert_acknowledged", alert_id=alert_id, alert_type=alert.type.value)
        return alert

    def resolve(self, alert_id: str, now_ms: int) -> Alert | None:
        """Set the resolution time once. Unknown ids are ignored."""
        alert = self.get(alert_id)
        if alert is None or alert.resolved_at_ms is not None:
            return alert
        alert.resolved_at_ms = now_ms
        logger.info("alert_resolved", alert_id=alert_id, alert_type=alert.type.value)
        return alert

    def within_target(self, alert_id: str, tier: str) -> dict[str, bool | None] | None:
        """
        Compare response times with the tier's MTTA and MTTR targets.

        Returns:
            ``{"mtta": ..., "mttr": ...}``, each None until the alert is
            acknowledged or resolved; None for an unknown id
        """
        alert = self.get(alert_id)
        if alert is None:
            return None
        targets = get_tier_config(tier)
        return {
            "mtta": (
                None
                if alert.acknowledged_at_ms is None
                else alert.acknowledged_within(targets.mtta_minutes)
            ),
            "mttr": (
                None
                if alert.resolved_at_ms is None
                else alert.resolved_within(targets.mttr_minutes)
            ),
        }

    def clear(self) -> None:
        self._alerts.clear()

    def __len__(self) -> int:
        return len(self._alerts)
