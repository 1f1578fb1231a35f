"""
Bounded in-memory event history.

Events are kept in arrival order and evicted oldest-first once the capacity
ceiling is exceeded. Nothing is persisted beyond the process.
"""

from __future__ import annotations

import json
from collections import deque
from pathlib import Path
from typing import Any, Iterable, Iterator

import structlog

from burnwatch.slos.models import Event

logger = structlog.get_logger()

DEFAULT_CAPACITY = 3000


class EventHistory:
    """Fixed-capacity, append-only event log."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._events: deque[Event] = deque(maxlen=capacity)

    def append(self, event: Event) -> int:
        """Append one event. Returns the number of events evicted."""
        return self.extend([event])

    def extend(self, events: Iterable[Event]) -> int:
        """Append events in order. Returns the number of events evicted."""
        batch = list(events)
        evicted = max(0, len(self._events) + len(batch) - self.capacity)
        self._events.extend(batch)
        if evicted:
            logger.info(
                "history_truncated",
                evicted=evicted,
                capacity=self.capacity,
            )
        return evicted

    def snapshot(self) -> tuple[Event, ...]:
        """Immutable copy of the current history, oldest first."""
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()

    def export(self) -> list[dict[str, Any]]:
        """Export the classified history verbatim, oldest first."""
        return [event.to_dict() for event in self._events]

    def export_json(self, path: str | Path) -> Path:
        """Write the classified history to ``path`` as a JSON array."""
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(self.export(), indent=2))
        logger.info("history_exported", path=str(output), events=len(self._events))
        return output

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)
