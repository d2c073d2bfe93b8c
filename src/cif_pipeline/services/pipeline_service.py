"""Process-wide CIF pipeline service.

Owns the state shared by every run in this process: the station directory
and the dedup key set. Publishers are opened per run from configuration.
"""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import BinaryIO

from cif_pipeline.data.config import PipelineConfig, get_pipeline_config
from cif_pipeline.data.publish_client import HttpEventPublisher
from cif_pipeline.data.station_directory import StationDirectory
from cif_pipeline.models.cif import Schedule
from cif_pipeline.models.events import CifProcessResult, InfrastructurePathwayConfirmedEvent
from cif_pipeline.services.cif_pipeline import CancellationSignal, CifPipeline
from cif_pipeline.services.deduplicator import ScheduleDeduplicator
from cif_pipeline.services.event_mapper import map_schedule_to_event
from cif_pipeline.services.publisher import EventPublisher, LoggingEventPublisher

logger = logging.getLogger(__name__)

# Module-level state (lazy-initialized)
_config: PipelineConfig | None = None
_directory: StationDirectory | None = None
_deduplicator: ScheduleDeduplicator | None = None


def _get_config() -> PipelineConfig:
    """Get or create the config singleton."""
    global _config
    if _config is None:
        _config = get_pipeline_config()
    return _config


def get_station_directory() -> StationDirectory:
    """Get or load the station directory singleton.

    Raises:
        FileNotFoundError: If a configured station table doesn't exist.
        StationDirectoryError: If a configured station table is invalid.
    """
    global _directory
    if _directory is None:
        config = _get_config()
        if config.station_directory_path is not None:
            _directory = StationDirectory.from_file(config.station_directory_path)
        else:
            _directory = StationDirectory.default()
    return _directory


def get_deduplicator() -> ScheduleDeduplicator:
    """Get or create the process-wide deduplicator."""
    global _deduplicator
    if _deduplicator is None:
        _deduplicator = ScheduleDeduplicator()
    return _deduplicator


def new_run_id() -> str:
    return str(uuid.uuid4())


@asynccontextmanager
async def open_publisher(config: PipelineConfig | None = None) -> AsyncIterator[EventPublisher]:
    """Open the configured publisher for the duration of a run.

    Uses the HTTP publisher when CIF_PUBLISH_URL is set, otherwise events are
    only logged.
    """
    config = config or _get_config()
    if config.publish_url:
        async with HttpEventPublisher(config) as publisher:
            yield publisher
    else:
        logger.debug("No publish URL configured, events will only be logged")
        yield LoggingEventPublisher()


async def process_content(
    content: str,
    run_id: str | None = None,
    force_refresh: bool = False,
    cancellation: CancellationSignal | None = None,
) -> CifProcessResult:
    """Process NDJSON content with the shared directory and deduplicator.

    Args:
        content: Decoded feed content.
        run_id: Run identifier; a new UUID is used when omitted.
        force_refresh: If True, republish schedules even if already seen.
        cancellation: Optional cooperative cancellation signal.

    Returns:
        CifProcessResult for the run.
    """
    run_id = run_id or new_run_id()
    async with open_publisher() as publisher:
        pipeline = CifPipeline(get_station_directory(), get_deduplicator(), publisher)
        return await pipeline.process_content(content, run_id, force_refresh, cancellation)


async def process_stream(
    stream: BinaryIO,
    run_id: str | None = None,
    force_refresh: bool = False,
    cancellation: CancellationSignal | None = None,
) -> CifProcessResult:
    """Process a (possibly gzip) feed stream with the shared state.

    See `process_content` for arguments.
    """
    run_id = run_id or new_run_id()
    async with open_publisher() as publisher:
        pipeline = CifPipeline(get_station_directory(), get_deduplicator(), publisher)
        return await pipeline.process_stream(stream, run_id, force_refresh, cancellation)


def transform_schedule(
    schedule: Schedule, correlation_id: str | None = None
) -> InfrastructurePathwayConfirmedEvent:
    """Map one schedule to its event using the shared station directory."""
    return map_schedule_to_event(schedule, correlation_id or new_run_id(), get_station_directory())


def reset_service() -> None:
    """Reset the service state completely.

    Forgets every dedup key and reloads config. Useful for testing.
    """
    global _config, _directory, _deduplicator
    _config = None
    _directory = None
    _deduplicator = None
    # Clear the lru_cache on get_pipeline_config so it re-reads .env/environment
    if hasattr(get_pipeline_config, "cache_clear"):
        get_pipeline_config.cache_clear()
