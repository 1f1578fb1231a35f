"""Root test configuration and shared fixtures."""

import logging

import pytest
import structlog
from burnwatch.slos.models import EventCandidate, Policy

NOW_MS = 1_700_000_000_000


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now_ms: int = NOW_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


def make_candidates(
    count: int,
    *,
    now_ms: int = NOW_MS,
    age_seconds: float = 0.0,
    success: bool = True,
    latency_ms: float = 100.0,
    category: str = "submit_payment",
    context: dict | None = None,
) -> list[EventCandidate]:
    """Build ``count`` identical candidates stamped ``age_seconds`` before ``now_ms``."""
    ts = now_ms - int(age_seconds * 1000)
    return [
        EventCandidate(
            success=success,
            latency_ms=latency_ms,
            timestamp_ms=ts,
            category=category,
            context=dict(context or {}),
        )
        for _ in range(count)
    ]


@pytest.fixture
def clock():
    """A fake clock starting at NOW_MS."""
    return FakeClock()


@pytest.fixture
def policy():
    """Baked policy with a 200ms latency target and 99.9% availability."""
    return Policy(bake_sli=True, latency_target_ms=200.0, availability_target=99.9)


@pytest.fixture
def make_events():
    """Factory for batches of event candidates."""
    return make_candidates
