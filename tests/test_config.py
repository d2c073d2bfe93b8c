"""Tests for pipeline configuration."""

from pathlib import Path

import pytest

from cif_pipeline.data.config import PipelineConfig, get_pipeline_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "CIF_STATION_DIRECTORY",
        "CIF_PUBLISH_URL",
        "CIF_PUBLISH_API_KEY",
        "CIF_PUBLISH_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_pipeline_config.cache_clear()
    yield
    get_pipeline_config.cache_clear()


def test_defaults():
    config = PipelineConfig(_env_file=None)

    assert config.station_directory_path is None
    assert config.publish_url is None
    assert config.publish_api_key is None
    assert config.publish_timeout_seconds == 30.0


def test_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CIF_STATION_DIRECTORY", "/etc/cif/stations.json")
    monkeypatch.setenv("CIF_PUBLISH_URL", "https://example.com/events")
    monkeypatch.setenv("CIF_PUBLISH_API_KEY", "secret")
    monkeypatch.setenv("CIF_PUBLISH_TIMEOUT", "2.5")

    config = PipelineConfig(_env_file=None)

    assert config.station_directory_path == Path("/etc/cif/stations.json")
    assert config.publish_url == "https://example.com/events"
    assert config.publish_api_key == "secret"
    assert config.publish_timeout_seconds == 2.5


def test_field_names_are_accepted():
    config = PipelineConfig(_env_file=None, publish_url="https://example.com/events")

    assert config.publish_url == "https://example.com/events"


def test_get_pipeline_config_is_cached():
    assert get_pipeline_config() is get_pipeline_config()
