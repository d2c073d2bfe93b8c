from typing import Any, Literal

from cif_pipeline.app import mcp
from cif_pipeline.models.cif import Schedule
from cif_pipeline.models.events import CifProcessResult, InfrastructurePathwayConfirmedEvent
from cif_pipeline.services.pipeline_service import (
    process_content as _process_content,
)
from cif_pipeline.services.pipeline_service import (
    transform_schedule as _transform_schedule,
)
from cif_pipeline.services.sample_feed import SAMPLE_RECORD_COUNTS, generate_sample_feed


@mcp.tool()
async def process_cif_feed(
    content: str | None = None,
    file_type: Literal["update", "full"] = "update",
    force_refresh: bool = False,
) -> CifProcessResult:
    """Run a CIF schedule feed through the ingestion pipeline.

    Each new planning schedule (STP indicator N) that calls at a known station
    is published once as an InfrastructurePathwayConfirmed event. Schedules
    already published by this server are skipped unless force_refresh is set.

    Args:
        content: NDJSON feed content, one JsonScheduleV1/JsonTimetableV1 record
                 per line. When omitted, a generated sample feed is processed.
        file_type: Size of the generated sample feed when content is omitted:
                   "update" (50 schedules) or "full" (200 schedules).
        force_refresh: If True, republish schedules even if already published.

    Returns:
        CifProcessResult containing:
        - processId: Run identifier (also the events' correlation id)
        - status: "completed" or "failed"
        - statistics: Line, filter, duplicate and publish counts
        - errors: Non-fatal errors (e.g. failed publishes)
    """
    if content is None:
        content = generate_sample_feed(SAMPLE_RECORD_COUNTS[file_type])

    return await _process_content(content, force_refresh=force_refresh)


@mcp.tool()
def transform_cif_schedule(
    schedule: dict[str, Any],
    correlation_id: str | None = None,
) -> InfrastructurePathwayConfirmedEvent:
    """Transform a single CIF schedule into its pathway event.

    Does not filter, deduplicate or publish. Useful for checking how a
    schedule maps to stations.

    Args:
        schedule: A JsonScheduleV1 object (CIF_train_uid, schedule_start_date,
                  schedule_location, ...).
        correlation_id: Correlation id for the event metadata. Generated if omitted.

    Returns:
        InfrastructurePathwayConfirmedEvent with resolved passage points.
    """
    return _transform_schedule(Schedule.model_validate(schedule), correlation_id)
