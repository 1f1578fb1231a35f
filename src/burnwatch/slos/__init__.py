"""
SLO compliance and multi-window multi-burn-rate alerting.

This module classifies events, aggregates them into rolling windows,
computes burn rates against the error budget and tracks alert lifecycles.
"""

from burnwatch.slos.alerts import Alert, AlertCandidate, AlertEvaluator, AlertStore
from burnwatch.slos.calculator import (
    BurnRateCalculator,
    DemoWindowSnapshot,
    burn_rate,
    good_by_policy,
    slice_window,
)
from burnwatch.slos.classifier import classify, percentile
from burnwatch.slos.engine import SLOEngine
from burnwatch.slos.history import EventHistory
from burnwatch.slos.ingest import EventRecord, load_events, parse_records
from burnwatch.slos.models import (
    AlertSeverity,
    AlertState,
    AlertType,
    Event,
    EventCandidate,
    Policy,
    WindowStats,
)
from burnwatch.slos.rules import (
    BurnRatePolicy,
    RuleKind,
    TimeScale,
    WindowRule,
    expected_bad_percent,
    standard_rules,
)

__all__ = [
    "Alert",
    "AlertCandidate",
    "AlertEvaluator",
    "AlertSeverity",
    "AlertState",
    "AlertStore",
    "AlertType",
    "BurnRateCalculator",
    "BurnRatePolicy",
    "DemoWindowSnapshot",
    "Event",
    "EventCandidate",
    "EventHistory",
    "EventRecord",
    "Policy",
    "RuleKind",
    "SLOEngine",
    "TimeScale",
    "WindowRule",
    "WindowStats",
    "burn_rate",
    "classify",
    "expected_bad_percent",
    "good_by_policy",
    "load_events",
    "parse_records",
    "percentile",
    "slice_window",
    "standard_rules",
]
