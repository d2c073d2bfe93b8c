"""Mapping of accepted schedules to InfrastructurePathwayConfirmed events."""

import logging
from datetime import UTC, datetime

from cif_pipeline.data.station_directory import StationDirectory
from cif_pipeline.models.cif import Schedule, ScheduleLocation
from cif_pipeline.models.events import (
    UNKNOWN_LOCATION,
    EventMetadata,
    InfrastructurePathwayConfirmedEvent,
    PassagePoint,
)

logger = logging.getLogger(__name__)

# CIF marks half-minute times with a trailing "H" (JSON extracts) or "½" (fixed-width CIF)
HALF_MINUTE_MARKERS = ("H", "½")


def format_cif_time(time: str | None) -> str | None:
    """Format a CIF HHMM time as HH:MM.

    The half-minute marker is dropped. Values that don't start with four
    digits are returned unchanged; this never raises.

    Examples:
        "0743" -> "07:43"
        "0743H" -> "07:43"
        "" -> None
        "7:43" -> "7:43"
    """
    if not time:
        return None

    cleaned = time.strip()
    for marker in HALF_MINUTE_MARKERS:
        cleaned = cleaned.replace(marker, "")

    if len(cleaned) >= 4 and cleaned[:4].isdigit():
        return f"{cleaned[:2]}:{cleaned[2:4]}"
    return time


def _to_passage_point(
    location: ScheduleLocation, directory: StationDirectory
) -> PassagePoint | None:
    """Resolve a waypoint, or None if its TIPLOC is not a known station."""
    station = directory.resolve(location.tiploc_code)
    if station is None:
        return None

    # working times first, public times as fallback
    return PassagePoint(
        location_code=station.station_code,
        location_name=station.station_name,
        arrival_time=format_cif_time(location.arrival or location.public_arrival),
        departure_time=format_cif_time(location.departure or location.public_departure),
        platform=location.platform or "",
    )


def map_schedule_to_event(
    schedule: Schedule,
    run_id: str,
    directory: StationDirectory,
    now: datetime | None = None,
) -> InfrastructurePathwayConfirmedEvent:
    """Convert a schedule into a pathway event.

    Waypoints are resolved in order and unknown ones are dropped. Origin and
    destination come from the first and last resolved points, or are
    "UNKNOWN" when nothing resolves.

    Args:
        schedule: The accepted schedule.
        run_id: Run identifier, used as the event correlation id.
        directory: Station lookup.
        now: Mapping instant (defaults to the current UTC time).

    Returns:
        InfrastructurePathwayConfirmedEvent for the schedule.
    """
    passage_points = []
    for index, location in enumerate(schedule.locations):
        point = _to_passage_point(location, directory)
        if point is None:
            role = schedule.location_role(index)
            logger.debug(
                f"{schedule.train_uid}: dropping unmapped {role.value} waypoint "
                f"{location.tiploc_code!r}"
            )
            continue
        passage_points.append(point)

    origin = passage_points[0].location_code if passage_points else UNKNOWN_LOCATION
    destination = passage_points[-1].location_code if passage_points else UNKNOWN_LOCATION
    timestamp = (now or datetime.now(UTC)).isoformat()

    return InfrastructurePathwayConfirmedEvent(
        train_service_number=schedule.train_uid,
        travel_date=schedule.start_date,
        origin=origin,
        destination=destination,
        passage_points=passage_points,
        metadata=EventMetadata(correlation_id=run_id, timestamp=timestamp),
    )
