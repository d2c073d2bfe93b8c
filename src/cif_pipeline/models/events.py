"""Pydantic models for outbound events and run results.

Field names are snake_case in Python and camelCase on the wire
(use `model_dump(by_alias=True)` / `model_dump_json(by_alias=True)`).
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EVENT_DOMAIN = "planning.short_term"
EVENT_NAME = "InfrastructurePathwayConfirmed"
UNKNOWN_LOCATION = "UNKNOWN"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PassagePoint(_CamelModel):
    """A resolved waypoint of a confirmed pathway."""

    location_code: str = Field(description="Station display code (e.g. 'EUS')")
    location_name: str
    arrival_time: str | None = Field(default=None, description="HH:MM, or raw value if unparseable")
    departure_time: str | None = Field(
        default=None, description="HH:MM, or raw value if unparseable"
    )
    platform: str = ""


class EventMetadata(_CamelModel):
    domain: str = EVENT_DOMAIN
    name: str = EVENT_NAME
    correlation_id: str
    timestamp: str = Field(description="UTC ISO-8601 instant the event was mapped")


class InfrastructurePathwayConfirmedEvent(_CamelModel):
    """Normalized event emitted for each accepted schedule."""

    train_service_number: str
    travel_date: str
    origin: str = UNKNOWN_LOCATION
    destination: str = UNKNOWN_LOCATION
    passage_points: list[PassagePoint] = []
    metadata: EventMetadata


class ProcessStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessingStatistics(_CamelModel):
    """Per-run counters."""

    total_lines: int = 0
    schedules_processed: int = 0
    schedules_filtered: int = 0
    duplicates_skipped: int = 0
    events_published: int = 0
    parse_errors: int = 0
    processing_time_ms: int = 0


class CifProcessResult(_CamelModel):
    """Outcome of one pipeline run.

    Always returned to the caller, including when the run failed on a stream fault.
    """

    process_id: str
    status: ProcessStatus = ProcessStatus.PROCESSING
    statistics: ProcessingStatistics = Field(default_factory=ProcessingStatistics)
    errors: list[str] = []
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
