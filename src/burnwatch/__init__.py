"""burnwatch: SLO compliance simulation and MWMB burn-rate alerting."""

from burnwatch.slos import (
    Alert,
    AlertSeverity,
    AlertType,
    Event,
    EventCandidate,
    Policy,
    SLOEngine,
    TimeScale,
    WindowRule,
)

__version__ = "0.1.0"

__all__ = [
    "Alert",
    "AlertSeverity",
    "AlertType",
    "Event",
    "EventCandidate",
    "Policy",
    "SLOEngine",
    "TimeScale",
    "WindowRule",
    "__version__",
]
