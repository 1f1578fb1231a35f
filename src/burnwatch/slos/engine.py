"""
SLO engine.

Owns the event history, policy, tier, saturation signal and alert store.
Every mutation re-runs one evaluation pass synchronously, so alert state is
never stale relative to the data behind it. There is no background timer.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterable

import structlog

from burnwatch.config.settings import Settings
from burnwatch.core.tiers import get_tier_config, normalize_tier
from burnwatch.slos.alerts import Alert, AlertEvaluator, AlertStore
from burnwatch.slos.calculator import BurnRateCalculator, DemoWindowSnapshot
from burnwatch.slos.classifier import classify
from burnwatch.slos.history import DEFAULT_CAPACITY, EventHistory
from burnwatch.slos.models import Event, EventCandidate, Policy, WindowStats
from burnwatch.slos.rules import (
    DEFAULT_MIN_SAMPLES,
    BurnRatePolicy,
    TimeScale,
    WindowRule,
    standard_rules,
)

logger = structlog.get_logger()

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


class SLOEngine:
    """
    Reactive SLO compliance and MWMB alerting engine.

    Writes are serialized by a re-entrant lock; each evaluation pass reads
    one consistent snapshot of history and policy.

    Usage:
        engine = SLOEngine(tier="Tier-1")
        engine.ingest(EventCandidate(success=True, latency_ms=120, timestamp_ms=now))
        for alert in engine.alerts:
            print(alert.type.value, alert.message)
    """

    def __init__(
        self,
        policy: Policy | None = None,
        tier: str = "Tier-1",
        capacity: int = DEFAULT_CAPACITY,
        scale: TimeScale | None = None,
        demo_window_seconds: float = 60.0,
        min_samples: int = DEFAULT_MIN_SAMPLES,
        auto_tier_presets: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._clock = clock or wall_clock_ms
        self.tier = normalize_tier(tier)
        self.scale = scale or TimeScale()
        self.min_samples = min_samples
        self.demo_window_seconds = demo_window_seconds
        self.auto_tier_presets = auto_tier_presets
        self.check_availability = True
        self.check_latency = True
        self.saturation_percent = 0.0

        if policy is None:
            preset = get_tier_config(self.tier)
            policy = Policy(
                latency_target_ms=preset.latency_target_ms,
                availability_target=preset.availability_target,
            )
        self._policy = policy

        self.history = EventHistory(capacity)
        self.store = AlertStore()
        self._rules = standard_rules(self.scale, self.tier, self.min_samples)

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock | None = None) -> SLOEngine:
        """Build an engine from application settings."""
        tier = normalize_tier(settings.default_tier)
        preset = get_tier_config(tier)
        policy = Policy(
            bake_sli=settings.bake_sli,
            latency_target_ms=preset.latency_target_ms,
            availability_target=preset.availability_target,
        )
        return cls(
            policy=policy,
            tier=tier,
            capacity=settings.history_capacity,
            scale=TimeScale(hour_seconds=settings.demo_hour_seconds),
            demo_window_seconds=settings.demo_window_seconds,
            min_samples=settings.min_window_samples,
            auto_tier_presets=settings.auto_tier_presets,
            clock=clock,
        )

    # -- state -----------------------------------------------------------

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def rules(self) -> tuple[WindowRule, ...]:
        return self._rules

    @property
    def alerts(self) -> list[Alert]:
        """Alerts, newest first."""
        with self._lock:
            return self.store.alerts

    def now(self) -> int:
        return self._clock()

    # -- mutations (each followed by one evaluation pass) -----------------

    def ingest(self, candidate: EventCandidate) -> Event:
        """Classify, append and re-evaluate."""
        return self.ingest_many([candidate])[0]

    def ingest_many(self, candidates: Iterable[EventCandidate]) -> list[Event]:
        """Classify a batch against the current policy, append, re-evaluate once."""
        with self._lock:
            events = [classify(candidate, self._policy) for candidate in candidates]
            self.history.extend(events)
            self.recompute()
            return events

    def update_policy(self, **changes: Any) -> Policy:
        """
        Validated policy write.

        Raises:
            PolicyValidationError: If a value is out of range
        """
        with self._lock:
            self._policy = self._policy.with_updates(**changes)
            logger.info("policy_updated", **self._policy.to_dict())
            self.recompute()
            return self._policy

    def set_tier(self, tier: str) -> None:
        """
        Switch service tier.

        With tier presets enabled the availability and latency targets are
        overwritten with the tier's preset values.
        """
        with self._lock:
            self.tier = normalize_tier(tier)
            self._rules = standard_rules(self.scale, self.tier, self.min_samples)
            if self.auto_tier_presets:
                preset = get_tier_config(self.tier)
                self._policy = self._policy.with_updates(
                    availability_target=preset.availability_target,
                    latency_target_ms=preset.latency_target_ms,
                )
            logger.info("tier_changed", tier=self.tier, **self._policy.to_dict())
            self.recompute()

    def set_saturation(self, cpu_percent: float) -> None:
        """Update the CPU saturation signal (clamped to 0-100)."""
        with self._lock:
            self.saturation_percent = max(0.0, min(100.0, float(cpu_percent)))
            self.recompute()

    def set_indicators(self, availability: bool = True, latency: bool = True) -> None:
        """Enable or disable the SLIs used by the demo comparison checks."""
        with self._lock:
            self.check_availability = availability
            self.check_latency = latency
            self.recompute()

    def acknowledge(self, alert_id: str) -> Alert | None:
        with self._lock:
            return self.store.acknowledge(alert_id, self.now())

    def resolve(self, alert_id: str) -> Alert | None:
        with self._lock:
            return self.store.resolve(alert_id, self.now())

    def within_target(self, alert_id: str) -> dict[str, bool | None] | None:
        """MTTA/MTTR verdicts against the current tier."""
        with self._lock:
            return self.store.within_target(alert_id, self.tier)

    def reset(self) -> None:
        """Drop history and alerts; policy and tier are kept."""
        with self._lock:
            self.history.clear()
            self.store.clear()
            self.saturation_percent = 0.0
            logger.info("engine_reset")

    # -- evaluation -------------------------------------------------------

    def recompute(self) -> list[Alert]:
        """
        Run one evaluation pass and record new firings.

        Returns:
            Alerts created by this pass
        """
        with self._lock:
            now = self.now()
            evaluator = AlertEvaluator(self._rules, self.demo_window_seconds)
            candidates = evaluator.evaluate(
                self.history.snapshot(),
                self._policy,
                now,
                tier=self.tier,
                saturation_percent=self.saturation_percent,
                check_availability=self.check_availability,
                check_latency=self.check_latency,
            )
            return self.store.add_candidates(candidates, now)

    # -- queries ----------------------------------------------------------

    def window_metrics(self, duration_seconds: float) -> WindowStats:
        """Total, bad percentage and burn for one window ending now."""
        with self._lock:
            calculator = BurnRateCalculator(self._policy)
            return calculator.window(self.history.snapshot(), duration_seconds, self.now())

    def demo_metrics(self) -> DemoWindowSnapshot:
        with self._lock:
            calculator = BurnRateCalculator(self._policy)
            return calculator.demo_window(
                self.history.snapshot(), self.demo_window_seconds, self.now()
            )

    def rule_metrics(self) -> list[dict[str, Any]]:
        """Short and long window stats for every rule."""
        with self._lock:
            calculator = BurnRateCalculator(self._policy)
            events = self.history.snapshot()
            now = self.now()
            burn_policy = BurnRatePolicy(self._policy, self._rules)
            rows = []
            for rule in self._rules:
                short = calculator.window(events, rule.short_seconds, now)
                long = calculator.window(events, rule.long_seconds, now)
                rows.append(
                    {
                        "rule": rule,
                        "short": short,
                        "long": long,
                        "expected_bad_percent": burn_policy.expected_bad_percent(
                            rule.threshold
                        ),
                    }
                )
            return rows

    def expected_bad_percent(self, threshold_multiplier: float) -> float:
        """Expected bad percentage at a threshold, honouring the lock."""
        return BurnRatePolicy(self._policy, self._rules).expected_bad_percent(
            threshold_multiplier
        )

    def export_events(self) -> list[dict[str, Any]]:
        """Classified history, verbatim, oldest first."""
        with self._lock:
            return self.history.export()
