"""Scope filtering for decoded schedules."""

from enum import Enum

from cif_pipeline.data.station_directory import StationDirectory
from cif_pipeline.models.cif import Schedule, StpIndicator


class FilterReason(str, Enum):
    """Why a schedule was left out of a run."""

    NOT_PLANNING = "not a planning schedule"
    NO_LOCATION_DATA = "no location data"
    NO_RECOGNIZED_LOCATIONS = "no recognized locations"


def classify_schedule(schedule: Schedule, directory: StationDirectory) -> FilterReason | None:
    """Decide whether a schedule is in scope.

    Checks run in order and the first match wins:
    - STP indicator is not N (new/planning)
    - no waypoints at all
    - none of the waypoints is a known station

    Returns:
        The filter reason, or None if the schedule is in scope.
    """
    if schedule.stp_indicator != StpIndicator.NEW.value:
        return FilterReason.NOT_PLANNING

    if not schedule.locations:
        return FilterReason.NO_LOCATION_DATA

    if not any(location.tiploc_code in directory for location in schedule.locations):
        return FilterReason.NO_RECOGNIZED_LOCATIONS

    return None
