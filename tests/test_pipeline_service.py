"""Tests for the process-wide pipeline service."""

import gzip
import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cif_pipeline.data.station_directory import StationDirectoryError
from cif_pipeline.models.cif import Schedule
from cif_pipeline.models.events import ProcessStatus
from cif_pipeline.services import pipeline_service
from cif_pipeline.services.publisher import LoggingEventPublisher

SCHEDULE = {
    "CIF_train_uid": "C12345",
    "CIF_stp_indicator": "N",
    "schedule_start_date": "2024-06-01",
    "schedule_location": [
        {"tiploc_code": "EUSTON", "departure": "0743"},
        {"tiploc_code": "MKTNKYL", "arrival": "0815"},
    ],
}
CONTENT = json.dumps({"JsonScheduleV1": SCHEDULE})


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch):
    """Start every test with fresh service state and no publish URL."""
    monkeypatch.delenv("CIF_PUBLISH_URL", raising=False)
    monkeypatch.delenv("CIF_STATION_DIRECTORY", raising=False)
    pipeline_service.reset_service()
    yield
    pipeline_service.reset_service()


@pytest.mark.asyncio
async def test_process_content_uses_logging_publisher_by_default():
    result = await pipeline_service.process_content(CONTENT, run_id="run-1")

    assert result.process_id == "run-1"
    assert result.status == ProcessStatus.COMPLETED
    assert result.statistics.events_published == 1


@pytest.mark.asyncio
async def test_run_id_is_generated_when_omitted():
    first = await pipeline_service.process_content(CONTENT)
    second = await pipeline_service.process_content(CONTENT)

    assert first.process_id
    assert first.process_id != second.process_id


@pytest.mark.asyncio
async def test_dedup_state_is_shared_across_calls():
    first = await pipeline_service.process_content(CONTENT)
    second = await pipeline_service.process_content(CONTENT)
    forced = await pipeline_service.process_content(CONTENT, force_refresh=True)

    assert first.statistics.events_published == 1
    assert second.statistics.duplicates_skipped == 1
    assert forced.statistics.events_published == 1


@pytest.mark.asyncio
async def test_reset_forgets_published_keys():
    await pipeline_service.process_content(CONTENT)
    pipeline_service.reset_service()

    result = await pipeline_service.process_content(CONTENT)

    assert result.statistics.events_published == 1


@pytest.mark.asyncio
async def test_process_stream():
    stream = io.BytesIO(gzip.compress(CONTENT.encode("utf-8")))

    result = await pipeline_service.process_stream(stream, run_id="run-1")

    assert result.statistics.events_published == 1


@pytest.mark.asyncio
async def test_http_publisher_used_when_url_configured(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CIF_PUBLISH_URL", "https://example.com/events")
    pipeline_service.reset_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=MagicMock())
        mock_client_class.return_value = mock_client

        result = await pipeline_service.process_content(CONTENT, run_id="run-1")

    assert result.statistics.events_published == 1
    mock_client.post.assert_awaited_once()
    assert mock_client.post.call_args.args[0] == "https://example.com/events"


@pytest.mark.asyncio
async def test_open_publisher_without_url():
    async with pipeline_service.open_publisher() as publisher:
        assert isinstance(publisher, LoggingEventPublisher)


def test_default_station_directory():
    directory = pipeline_service.get_station_directory()

    assert "EUSTON" in directory
    assert pipeline_service.get_station_directory() is directory


def test_station_directory_from_configured_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "stations.json"
    path.write_text(
        json.dumps([{"tiploc_code": "CREWE", "station_code": "CRE", "station_name": "Crewe"}])
    )
    monkeypatch.setenv("CIF_STATION_DIRECTORY", str(path))
    pipeline_service.reset_service()

    directory = pipeline_service.get_station_directory()

    assert len(directory) == 1
    assert "CREWE" in directory


def test_invalid_station_file_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "stations.json"
    path.write_text("{}")
    monkeypatch.setenv("CIF_STATION_DIRECTORY", str(path))
    pipeline_service.reset_service()

    with pytest.raises(StationDirectoryError):
        pipeline_service.get_station_directory()


def test_transform_schedule():
    event = pipeline_service.transform_schedule(Schedule.model_validate(SCHEDULE), "corr-1")

    assert event.metadata.correlation_id == "corr-1"
    assert event.origin == "EUS"
    assert event.destination == "MKC"


def test_transform_schedule_generates_correlation_id():
    event = pipeline_service.transform_schedule(Schedule.model_validate(SCHEDULE))

    assert event.metadata.correlation_id
