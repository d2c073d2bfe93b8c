"""Shared fixtures for pipeline tests."""

import pytest

from cif_pipeline.data.station_directory import StationDirectory, StationMapping
from cif_pipeline.models.events import InfrastructurePathwayConfirmedEvent
from cif_pipeline.services.deduplicator import ScheduleDeduplicator


class RecordingPublisher:
    """In-memory publisher that records every accepted event.

    `outcomes` lets a test script the result of successive publishes
    (True/False); once exhausted every publish succeeds.
    """

    def __init__(self, outcomes: list[bool] | None = None):
        self.events: list[InfrastructurePathwayConfirmedEvent] = []
        self.attempts = 0
        self._outcomes = list(outcomes or [])

    async def publish(self, event: InfrastructurePathwayConfirmedEvent) -> bool:
        self.attempts += 1
        ok = self._outcomes.pop(0) if self._outcomes else True
        if ok:
            self.events.append(event)
        return ok


@pytest.fixture
def directory() -> StationDirectory:
    """A minimal station directory with three stations."""
    return StationDirectory(
        [
            StationMapping(tiploc_code="EUSTON", station_code="EUS", station_name="London Euston"),
            StationMapping(
                tiploc_code="MKTNKYL", station_code="MKC", station_name="Milton Keynes Central"
            ),
            StationMapping(
                tiploc_code="BHAMNWS", station_code="BHM", station_name="Birmingham New Street"
            ),
        ]
    )


@pytest.fixture
def deduplicator() -> ScheduleDeduplicator:
    return ScheduleDeduplicator()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def publisher_factory() -> type[RecordingPublisher]:
    """The RecordingPublisher class, for tests that script publish outcomes."""
    return RecordingPublisher
