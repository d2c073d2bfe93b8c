"""Streaming CIF schedule pipeline.

Reads an NDJSON schedule feed line by line, filters it down to new planning
schedules that touch known stations, drops schedules already published in this
process and publishes an InfrastructurePathwayConfirmed event for the rest.

Bad lines and failed publishes are counted and recorded but never stop a run.
Only a failure of the feed source itself (I/O, corrupt gzip, undecodable
bytes) ends a run early, with status "failed".
"""

import logging
import time
import zlib
from collections.abc import Iterator
from contextlib import closing
from typing import BinaryIO, Protocol

from cif_pipeline.data.feed_reader import iter_content_lines, iter_stream_lines
from cif_pipeline.data.station_directory import StationDirectory
from cif_pipeline.models.cif import (
    AssociationEnvelope,
    RecordDecodeError,
    Schedule,
    ScheduleEnvelope,
    TimetableHeaderEnvelope,
    UnknownEnvelope,
    parse_envelope,
)
from cif_pipeline.models.events import (
    CifProcessResult,
    InfrastructurePathwayConfirmedEvent,
    ProcessingStatistics,
    ProcessStatus,
)
from cif_pipeline.services.classifier import classify_schedule
from cif_pipeline.services.deduplicator import ScheduleDeduplicator
from cif_pipeline.services.event_mapper import map_schedule_to_event
from cif_pipeline.services.publisher import EventPublisher

logger = logging.getLogger(__name__)

# Errors raised by the feed source itself, as opposed to a single bad record
STREAM_FAULTS = (OSError, EOFError, UnicodeDecodeError, zlib.error)


class CancellationSignal(Protocol):
    """Anything with `is_set()`, e.g. asyncio.Event or threading.Event."""

    def is_set(self) -> bool: ...


class CifPipeline:
    """Runs CIF feeds through classify -> deduplicate -> map -> publish."""

    def __init__(
        self,
        directory: StationDirectory,
        deduplicator: ScheduleDeduplicator,
        publisher: EventPublisher,
    ):
        """Initialize the pipeline.

        Args:
            directory: Station lookup used for filtering and mapping.
            deduplicator: Key set shared by every run that should see the same
                history (usually one per process).
            publisher: Outbound event transport.
        """
        self._directory = directory
        self._deduplicator = deduplicator
        self._publisher = publisher

    async def process_stream(
        self,
        stream: BinaryIO,
        run_id: str,
        force_refresh: bool = False,
        cancellation: CancellationSignal | None = None,
    ) -> CifProcessResult:
        """Process a feed byte stream, gzip-compressed or not.

        Args:
            stream: Readable binary stream. Left open.
            run_id: Run identifier, used as the correlation id of every event.
            force_refresh: If True, republish schedules even if already seen.
            cancellation: Checked before each line; when set the run stops and
                returns what it has so far.

        Returns:
            CifProcessResult with status, statistics and non-fatal errors.

        Raises:
            ValueError: If the stream is missing or run_id is empty.
        """
        if stream is None:
            raise ValueError("stream is required")
        _check_run_id(run_id)
        return await self._run(iter_stream_lines(stream), run_id, force_refresh, cancellation)

    async def process_content(
        self,
        content: str,
        run_id: str,
        force_refresh: bool = False,
        cancellation: CancellationSignal | None = None,
    ) -> CifProcessResult:
        """Process an already-decoded NDJSON feed.

        Same contract as `process_stream`, without decompression.
        """
        if content is None:
            raise ValueError("content is required")
        _check_run_id(run_id)
        return await self._run(iter_content_lines(content), run_id, force_refresh, cancellation)

    def transform(self, schedule: Schedule, run_id: str) -> InfrastructurePathwayConfirmedEvent:
        """Map a single schedule to its event without filtering or publishing."""
        return map_schedule_to_event(schedule, run_id, self._directory)

    async def _run(
        self,
        lines: Iterator[str],
        run_id: str,
        force_refresh: bool,
        cancellation: CancellationSignal | None,
    ) -> CifProcessResult:
        started = time.monotonic()
        result = CifProcessResult(process_id=run_id)
        stats = result.statistics

        try:
            with closing(lines):
                while not _is_cancelled(cancellation):
                    line = next(lines, None)
                    if line is None:
                        break
                    await self._process_line(line, run_id, force_refresh, result)
                else:
                    logger.info(f"CIF run {run_id} cancelled after {stats.total_lines} lines")
            result.status = ProcessStatus.COMPLETED
        except STREAM_FAULTS as e:
            logger.error(f"Error processing CIF feed for run {run_id}: {e}")
            result.status = ProcessStatus.FAILED
            result.errors.append(f"Stream processing error: {e}")

        stats.processing_time_ms = int((time.monotonic() - started) * 1000)
        _log_run_summary(run_id, result.status, stats)
        return result

    async def _process_line(
        self, line: str, run_id: str, force_refresh: bool, result: CifProcessResult
    ) -> None:
        stats = result.statistics
        line = line.strip()
        if not line:
            return

        stats.total_lines += 1

        try:
            record = parse_envelope(line)
        except RecordDecodeError as e:
            stats.parse_errors += 1
            logger.debug(f"Failed to parse CIF line {stats.total_lines}: {e}")
            return

        if isinstance(record, ScheduleEnvelope):
            await self._process_schedule(record.schedule, run_id, force_refresh, result)
        elif isinstance(record, TimetableHeaderEnvelope):
            logger.debug(
                f"Timetable header: owner={record.header.owner} "
                f"classification={record.header.classification}"
            )
        elif isinstance(record, (AssociationEnvelope, UnknownEnvelope)):
            # associations and other record types are not part of the pathway feed
            pass

    async def _process_schedule(
        self, schedule: Schedule, run_id: str, force_refresh: bool, result: CifProcessResult
    ) -> None:
        stats = result.statistics

        reason = classify_schedule(schedule, self._directory)
        if reason is not None:
            stats.schedules_filtered += 1
            logger.debug(f"Filtered {schedule.train_uid}: {reason.value}")
            return

        stats.schedules_processed += 1

        key = schedule.dedup_key
        if not self._deduplicator.accept(key, force_refresh):
            stats.duplicates_skipped += 1
            return

        event = self.transform(schedule, run_id)

        published = False
        failure = "publisher rejected the event"
        try:
            published = await self._publisher.publish(event)
        except Exception as e:
            failure = str(e) or type(e).__name__
        finally:
            # a key only becomes "seen" once its publish is known to have succeeded;
            # forced accepts hold no reservation, so there is nothing to release
            reserved = not force_refresh
            if published:
                self._deduplicator.commit(key, reserved=reserved)
            elif reserved:
                self._deduplicator.release(key)

        if published:
            stats.events_published += 1
        else:
            logger.warning(f"Failed to publish {key} for run {run_id}: {failure}")
            result.errors.append(
                f"Failed to publish {schedule.train_uid} ({schedule.start_date}): {failure}"
            )


def _check_run_id(run_id: str) -> None:
    if not isinstance(run_id, str) or not run_id.strip():
        raise ValueError("run_id must be a non-empty string")


def _is_cancelled(cancellation: CancellationSignal | None) -> bool:
    return cancellation is not None and cancellation.is_set()


def _log_run_summary(run_id: str, status: ProcessStatus, stats: ProcessingStatistics) -> None:
    logger.info(
        f"CIF processing {status.value}. RunId: {run_id}, "
        f"TotalLines: {stats.total_lines}, Processed: {stats.schedules_processed}, "
        f"Published: {stats.events_published}, Filtered: {stats.schedules_filtered}, "
        f"Duplicates: {stats.duplicates_skipped}, ParseErrors: {stats.parse_errors}, "
        f"Time: {stats.processing_time_ms}ms"
    )
