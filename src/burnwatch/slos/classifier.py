"""
Per-event SLO compliance classification.
"""

from __future__ import annotations

import math
from typing import Iterable

import structlog

from burnwatch.slos.models import (
    LATENCY_VIOLATION,
    Event,
    EventCandidate,
    Policy,
    new_id,
)

logger = structlog.get_logger()


def classify(candidate: EventCandidate, policy: Policy) -> Event:
    """
    Classify a raw event against the current latency target.

    The compliance fields are a snapshot: later policy changes do not
    rewrite them. Latency is taken as given; clamping is the event
    source's job.

    Args:
        candidate: Raw event from the event source
        policy: Policy in effect at classification time

    Returns:
        Frozen, classified Event
    """
    threshold = policy.latency_target_ms
    violations: list[str] = []
    if candidate.latency_ms > threshold:
        violations.append(LATENCY_VIOLATION)

    event = Event(
        id=candidate.id or new_id(),
        timestamp_ms=candidate.timestamp_ms,
        success=candidate.success,
        latency_ms=candidate.latency_ms,
        category=candidate.category,
        origin=candidate.origin,
        context=dict(candidate.context),
        is_slo_compliant=not violations,
        slo_violations=tuple(violations),
        slo_thresholds={"latency_ms": threshold},
    )

    logger.debug(
        "event_classified",
        event_id=event.id,
        compliant=event.is_slo_compliant,
        violations=list(event.slo_violations),
    )
    return event


def percentile(values: Iterable[float], p: float) -> float:
    """
    Nearest-rank percentile.

    Returns the element at ``ceil(p/100 * n) - 1`` of the ascending sort,
    clamped to the valid index range; NaN for an empty input.
    """
    ordered = sorted(values)
    if not ordered:
        return math.nan
    idx = math.ceil(p * len(ordered) / 100) - 1
    idx = max(0, min(idx, len(ordered) - 1))
    return ordered[idx]
