import argparse
import asyncio
import gzip
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from cif_pipeline.app import mcp
from cif_pipeline.models.events import ProcessStatus

# register tools
from cif_pipeline.tools import pipeline_tools  # noqa: F401


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the CIF pipeline server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from cif_pipeline import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


async def run_process(feed_path: Path, run_id: str | None, force_refresh: bool) -> bool:
    """Run a feed file through the pipeline. Returns False if the run failed."""
    from cif_pipeline.services.pipeline_service import process_stream

    if not feed_path.exists():
        raise FileNotFoundError(f"Feed file not found: {feed_path}")

    with open(feed_path, "rb") as f:
        result = await process_stream(f, run_id=run_id, force_refresh=force_refresh)

    stats = result.statistics
    print(f"\nRun {result.process_id} {result.status.value}:")
    print(f"  total lines:         {stats.total_lines:,}")
    print(f"  schedules processed: {stats.schedules_processed:,}")
    print(f"  schedules filtered:  {stats.schedules_filtered:,}")
    print(f"  duplicates skipped:  {stats.duplicates_skipped:,}")
    print(f"  events published:    {stats.events_published:,}")
    print(f"  parse errors:        {stats.parse_errors:,}")
    print(f"  time:                {stats.processing_time_ms:,} ms")
    for error in result.errors:
        print(f"  error: {error}")

    return result.status != ProcessStatus.FAILED


def write_sample(out_path: Path, count: int, compress: bool, seed: int | None) -> None:
    """Write a generated sample feed to disk."""
    from cif_pipeline.services.sample_feed import generate_sample_feed

    content = generate_sample_feed(count, seed=seed)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if compress:
        with gzip.open(out_path, "wt", encoding="utf-8") as f:
            f.write(content)
    else:
        out_path.write_text(content, encoding="utf-8")
    print(f"Wrote {count:,} schedules to {out_path}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="cif-pipeline",
        description="CIF schedule ingestion pipeline",
    )
    subparsers = parser.add_subparsers(dest="command")

    # process command
    process_parser = subparsers.add_parser(
        "process",
        help="Process a CIF NDJSON feed file (plain or gzip)",
    )
    process_parser.add_argument(
        "feed_path",
        type=Path,
        help="Path to the feed file",
    )
    process_parser.add_argument(
        "--run-id",
        default=None,
        help="Run identifier used as event correlation id (default: new UUID)",
    )
    process_parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Republish schedules even if already published",
    )
    process_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    # sample command
    sample_parser = subparsers.add_parser(
        "sample",
        help="Write a generated sample CIF feed",
    )
    sample_parser.add_argument(
        "out_path",
        type=Path,
        help="Output file path",
    )
    sample_parser.add_argument(
        "--count",
        type=int,
        default=50,
        help="Number of schedules (default: 50)",
    )
    sample_parser.add_argument(
        "--gzip",
        action="store_true",
        help="Gzip-compress the output",
    )
    sample_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible output",
    )

    args = parser.parse_args()

    if args.command == "process":
        # Configure logging
        log_level = logging.DEBUG if args.verbose else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        ok = asyncio.run(run_process(args.feed_path, args.run_id, args.force_refresh))
        if not ok:
            sys.exit(1)
    elif args.command == "sample":
        write_sample(args.out_path, args.count, args.gzip, args.seed)
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
