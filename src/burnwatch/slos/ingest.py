"""
Event ingestion from external sources.

Validates raw event records (JSON array, JSON lines or YAML) and converts
them into EventCandidate values for the engine. Records written by the
business process logger are accepted under their original field names.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import structlog
import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from burnwatch.core.errors import IngestError
from burnwatch.slos.models import EventCandidate

logger = structlog.get_logger()


class EventRecord(BaseModel):
    """An external event record."""

    model_config = ConfigDict(extra="ignore")

    success: bool = Field(
        ...,
        validation_alias=AliasChoices("success", "is_successful"),
        description="Whether the business operation succeeded",
    )
    latency_ms: float = Field(..., ge=0, description="Operation latency in milliseconds")
    timestamp_ms: int = Field(
        ...,
        validation_alias=AliasChoices("timestamp_ms", "ts"),
        description="Epoch timestamp in milliseconds",
    )
    category: str = Field(
        "submit_payment",
        validation_alias=AliasChoices("category", "event_type"),
        description="Business event type",
    )
    origin: str = Field(
        "on-frontend",
        validation_alias=AliasChoices("origin", "origin_service"),
        description="Emitting service",
    )
    context: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("context", "additional_context"),
    )
    id: str | None = None

    def to_candidate(self) -> EventCandidate:
        return EventCandidate(
            success=self.success,
            latency_ms=self.latency_ms,
            timestamp_ms=self.timestamp_ms,
            category=self.category,
            origin=self.origin,
            context=dict(self.context),
            id=self.id,
        )


def parse_records(records: Iterable[Any], source: str = "<memory>") -> list[EventCandidate]:
    """
    Validate raw records.

    Raises:
        IngestError: If any record is not a valid event
    """
    candidates: list[EventCandidate] = []
    for index, raw in enumerate(records):
        if not isinstance(raw, dict):
            raise IngestError(
                "Event record is not a mapping",
                {"source": source, "index": index},
            )
        try:
            candidates.append(EventRecord.model_validate(raw).to_candidate())
        except PydanticValidationError as e:
            raise IngestError(
                "Invalid event record",
                {"source": source, "index": index, "errors": e.error_count()},
            ) from e
    return candidates


def load_events(path: str | Path) -> list[EventCandidate]:
    """
    Load event records from a file.

    Supported formats: ``.json`` (array), ``.jsonl`` (one object per line),
    ``.yaml``/``.yml`` (sequence).

    Raises:
        IngestError: If the file is missing, unreadable or malformed
    """
    file_path = Path(path)
    if not file_path.exists():
        raise IngestError("Event file not found", {"path": str(file_path)})

    suffix = file_path.suffix.lower()
    try:
        text = file_path.read_text(encoding="utf-8")
        if suffix == ".jsonl":
            records = [json.loads(line) for line in text.splitlines() if line.strip()]
        elif suffix in (".yaml", ".yml"):
            records = yaml.safe_load(text) or []
        else:
            records = json.loads(text) if text.strip() else []
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise IngestError(
            "Could not read event file",
            {"path": str(file_path), "reason": str(e)},
        ) from e

    if not isinstance(records, list):
        raise IngestError("Event file must contain a list of records", {"path": str(file_path)})

    candidates = parse_records(records, source=str(file_path))
    logger.info("events_loaded", path=str(file_path), events=len(candidates))
    return candidates
