"""Tests for the MCP server, health tool and CLI commands."""

import gzip
from pathlib import Path

import pytest

from cif_pipeline import __version__
from cif_pipeline.server import health, run_process, write_sample
from cif_pipeline.services import pipeline_service


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("CIF_PUBLISH_URL", raising=False)
    monkeypatch.delenv("CIF_STATION_DIRECTORY", raising=False)
    pipeline_service.reset_service()
    yield
    pipeline_service.reset_service()


def test_health_returns_ok_status():
    """Health check should return status ok."""
    response = health()
    assert response.status == "ok"


def test_health_returns_version():
    """Health check should return the current version."""
    response = health()
    assert response.version == __version__


def test_health_returns_timestamp():
    """Health check should return a valid ISO timestamp."""
    response = health()
    assert "T" in response.timestamp


def test_write_sample_gzip(tmp_path: Path):
    out_path = tmp_path / "feeds" / "sample.ndjson.gz"

    write_sample(out_path, count=5, compress=True, seed=1)

    with gzip.open(out_path, "rt", encoding="utf-8") as f:
        assert len(f.read().split("\n")) == 6


@pytest.mark.asyncio
async def test_run_process_sample_file(tmp_path: Path, capsys: pytest.CaptureFixture):
    out_path = tmp_path / "sample.ndjson.gz"
    write_sample(out_path, count=10, compress=True, seed=1)

    ok = await run_process(out_path, run_id="cli-run", force_refresh=False)

    assert ok is True
    output = capsys.readouterr().out
    assert "Run cli-run completed" in output
    assert "total lines:         11" in output


@pytest.mark.asyncio
async def test_run_process_reports_failure(tmp_path: Path):
    path = tmp_path / "broken.gz"
    path.write_bytes(b"\x1f\x8bnot really gzip")

    ok = await run_process(path, run_id=None, force_refresh=False)

    assert ok is False


@pytest.mark.asyncio
async def test_run_process_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        await run_process(tmp_path / "missing.ndjson", run_id=None, force_refresh=False)
