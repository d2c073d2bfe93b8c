"""Tests for the pipeline MCP tools."""

from unittest.mock import AsyncMock, patch

import pytest

from cif_pipeline.models.events import CifProcessResult, ProcessStatus
from cif_pipeline.services import pipeline_service
from cif_pipeline.tools.pipeline_tools import process_cif_feed, transform_cif_schedule


def _create_mock_result() -> CifProcessResult:
    """Create a mock process result."""
    return CifProcessResult(process_id="run-1", status=ProcessStatus.COMPLETED)


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("CIF_PUBLISH_URL", raising=False)
    monkeypatch.delenv("CIF_STATION_DIRECTORY", raising=False)
    pipeline_service.reset_service()
    yield
    pipeline_service.reset_service()


@pytest.mark.asyncio
async def test_process_cif_feed_passes_content():
    with patch(
        "cif_pipeline.tools.pipeline_tools._process_content",
        new_callable=AsyncMock,
        return_value=_create_mock_result(),
    ) as mock_process:
        result = await process_cif_feed(content="line", force_refresh=True)

    assert result.process_id == "run-1"
    mock_process.assert_awaited_once_with("line", force_refresh=True)


@pytest.mark.asyncio
@pytest.mark.parametrize(("file_type", "expected"), [("update", 50), ("full", 200)])
async def test_process_cif_feed_generates_sample_when_no_content(file_type: str, expected: int):
    with patch(
        "cif_pipeline.tools.pipeline_tools._process_content",
        new_callable=AsyncMock,
        return_value=_create_mock_result(),
    ) as mock_process:
        await process_cif_feed(file_type=file_type)

    content = mock_process.call_args.args[0]
    # header plus one line per schedule
    assert len(content.split("\n")) == expected + 1


@pytest.mark.asyncio
async def test_process_cif_feed_end_to_end():
    """Without content the tool processes a generated update-sized feed."""
    first = await process_cif_feed()

    assert first.status == ProcessStatus.COMPLETED
    assert first.statistics.total_lines == 51
    assert first.statistics.parse_errors == 0
    assert first.statistics.events_published > 0


def test_transform_cif_schedule():
    schedule = {
        "CIF_train_uid": "C12345",
        "CIF_stp_indicator": "N",
        "schedule_start_date": "2024-06-01",
        "schedule_location": [
            {"tiploc_code": "PADTON", "departure": "1000"},
            {"tiploc_code": "RDNGSTN", "arrival": "1025", "departure": "1027"},
            {"tiploc_code": "DIDCOTP", "pass": "1040"},
        ],
    }

    event = transform_cif_schedule(schedule, correlation_id="corr-1")

    assert event.origin == "PAD"
    assert event.destination == "RDG"
    assert [p.location_code for p in event.passage_points] == ["PAD", "RDG"]
    assert event.metadata.correlation_id == "corr-1"
