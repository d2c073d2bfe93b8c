"""Pydantic models for CIF NDJSON feed records.

Each line of a Network Rail JSON schedule extract is an object with exactly one
top-level key naming the record type (JsonTimetableV1, JsonScheduleV1, ...).
We only model the record types the pipeline reads; anything else decodes to
UnknownEnvelope.
"""

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

# top-level keys of the envelope variants we understand
TIMETABLE_KEY = "JsonTimetableV1"
SCHEDULE_KEY = "JsonScheduleV1"
ASSOCIATION_KEY = "JsonAssociationV1"

# schedule fields that real extracts nest inside schedule_segment
SEGMENT_FIELDS = ("schedule_location", "CIF_train_category", "CIF_power_type")


class RecordDecodeError(ValueError):
    """Raised when a feed line cannot be decoded into an envelope record."""


class StpIndicator(str, Enum):
    """Short-term planning indicator of a schedule."""

    NEW = "N"  # new/planning schedule
    PERMANENT = "P"
    OVERLAY = "O"
    CANCELLATION = "C"


class WaypointRole(str, Enum):
    """Position of a waypoint within its schedule."""

    ORIGIN = "origin"
    INTERMEDIATE = "intermediate"
    TERMINAL = "terminal"


class TimetableHeader(BaseModel):
    """Header record, appears once at the top of a feed."""

    model_config = ConfigDict(extra="ignore")

    classification: str = ""
    timestamp: int = 0
    owner: str = ""


class ScheduleLocation(BaseModel):
    """A single stop or pass point of a schedule (CIF LO/LI/LT record)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    tiploc_code: str = ""
    location_type: str | None = None
    record_identity: str | None = None
    arrival: str | None = None
    departure: str | None = None
    public_arrival: str | None = None
    public_departure: str | None = None
    pass_time: str | None = Field(default=None, alias="pass")
    platform: str | None = None


class Schedule(BaseModel):
    """A planned train service (JsonScheduleV1 payload)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    train_uid: str = Field(alias="CIF_train_uid")
    stp_indicator: str = Field(default="", alias="CIF_stp_indicator")
    start_date: str = Field(alias="schedule_start_date")  # YYYY-MM-DD
    end_date: str | None = Field(default=None, alias="schedule_end_date")
    days_runs: str | None = Field(default=None, alias="schedule_days_runs")  # Mon..Sun 0/1 mask
    train_status: str | None = None
    category: str | None = Field(default=None, alias="train_category")
    operator_code: str | None = Field(default=None, alias="atoc_code")
    power_type: str | None = Field(default=None, alias="CIF_power_type")
    applicable_timetable: str | None = None
    locations: list[ScheduleLocation] = Field(default_factory=list, alias="schedule_location")

    @model_validator(mode="before")
    @classmethod
    def _lift_schedule_segment(cls, data: Any) -> Any:
        """Accept both the flat shape and the nested schedule_segment shape."""
        if not isinstance(data, dict):
            return data
        lifted = dict(data)
        segment = data.get("schedule_segment")
        if isinstance(segment, dict):
            for name in SEGMENT_FIELDS:
                if lifted.get(name) is None and segment.get(name) is not None:
                    lifted[name] = segment[name]
        if lifted.get("train_category") is None and lifted.get("CIF_train_category") is not None:
            lifted["train_category"] = lifted["CIF_train_category"]
        # cancellations often carry explicit nulls here
        if lifted.get("schedule_location") is None and lifted.get("locations") is None:
            lifted["schedule_location"] = []
        if lifted.get("CIF_stp_indicator") is None and lifted.get("stp_indicator") is None:
            lifted["CIF_stp_indicator"] = ""
        return lifted

    @property
    def dedup_key(self) -> str:
        """Composite key identifying this schedule for deduplication."""
        return f"{self.train_uid}_{self.start_date}"

    def location_role(self, index: int) -> WaypointRole:
        """Role of the waypoint at `index`, derived from its position."""
        if index == 0:
            return WaypointRole.ORIGIN
        if index == len(self.locations) - 1:
            return WaypointRole.TERMINAL
        return WaypointRole.INTERMEDIATE


class Association(BaseModel):
    """Association between two services (JsonAssociationV1 payload)."""

    model_config = ConfigDict(extra="ignore")

    main_train_uid: str | None = None
    assoc_train_uid: str | None = None
    assoc_start_date: str | None = None
    category: str | None = None
    location: str | None = None


class TimetableHeaderEnvelope(BaseModel):
    kind: Literal["header"] = "header"
    header: TimetableHeader


class ScheduleEnvelope(BaseModel):
    kind: Literal["schedule"] = "schedule"
    schedule: Schedule


class AssociationEnvelope(BaseModel):
    kind: Literal["association"] = "association"
    association: Association


class UnknownEnvelope(BaseModel):
    kind: Literal["unknown"] = "unknown"
    keys: list[str] = []


EnvelopeRecord = TimetableHeaderEnvelope | ScheduleEnvelope | AssociationEnvelope | UnknownEnvelope


def parse_envelope(line: str) -> EnvelopeRecord:
    """Decode one NDJSON feed line into an envelope record.

    Args:
        line: A single non-empty line of the feed.

    Returns:
        The envelope variant matching the line's top-level key.

    Raises:
        RecordDecodeError: If the line is not a JSON object or a known payload
            fails validation.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise RecordDecodeError(f"invalid JSON: {e.msg} at column {e.colno}") from e

    if not isinstance(payload, dict):
        raise RecordDecodeError(f"expected a JSON object, got {type(payload).__name__}")

    try:
        if payload.get(SCHEDULE_KEY) is not None:
            return ScheduleEnvelope(schedule=Schedule.model_validate(payload[SCHEDULE_KEY]))
        if payload.get(TIMETABLE_KEY) is not None:
            return TimetableHeaderEnvelope(
                header=TimetableHeader.model_validate(payload[TIMETABLE_KEY])
            )
        if payload.get(ASSOCIATION_KEY) is not None:
            return AssociationEnvelope(
                association=Association.model_validate(payload[ASSOCIATION_KEY])
            )
    except ValidationError as e:
        raise RecordDecodeError(f"invalid record: {e.error_count()} validation error(s)") from e

    return UnknownEnvelope(keys=sorted(payload))
