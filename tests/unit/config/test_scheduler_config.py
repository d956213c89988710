"""Unit tests for SchedulerConfig."""

import pytest

from jukebox.config.scheduler_config import (
    DEFAULT_ALLOWED_VIDEO_HOSTS,
    DEFAULT_SCHEDULER_CONFIG,
    SchedulerConfig,
)

_ENV_VARS = (
    "JUKEBOX_MAX_CONFLICT_ATTEMPTS",
    "JUKEBOX_MAX_BATCH_SIZE",
    "JUKEBOX_ALLOWED_VIDEO_HOSTS",
    "JUKEBOX_CONFLICT_RETRY_AFTER",
    "JUKEBOX_STORE_BACKEND",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSchedulerConfigDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        config = SchedulerConfig()
        assert config.max_conflict_attempts == 5
        assert config.max_batch_size == 20
        assert config.allowed_video_hosts == DEFAULT_ALLOWED_VIDEO_HOSTS
        assert config.conflict_retry_after_seconds == 1
        assert config.store_backend == "memory"
        assert config == DEFAULT_SCHEDULER_CONFIG


class TestSchedulerConfigValidation:
    """Tests for __post_init__ validation."""

    @pytest.mark.parametrize(
        ("field_name", "value"),
        [
            ("max_conflict_attempts", 0),
            ("max_batch_size", 0),
            ("allowed_video_hosts", ()),
            ("conflict_retry_after_seconds", 0),
            ("store_backend", "redis"),
        ],
    )
    def test_invalid_values_rejected(self, field_name: str, value: object) -> None:
        with pytest.raises(ValueError, match=field_name):
            SchedulerConfig(**{field_name: value})


class TestSchedulerConfigFromEnvironment:
    """Tests for from_environment."""

    def test_no_env_gives_defaults(self) -> None:
        assert SchedulerConfig.from_environment() == SchedulerConfig()

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("JUKEBOX_MAX_CONFLICT_ATTEMPTS", "3")
        monkeypatch.setenv("JUKEBOX_MAX_BATCH_SIZE", "7")
        monkeypatch.setenv("JUKEBOX_ALLOWED_VIDEO_HOSTS", "YouTu.be, www.youtube.com,")
        monkeypatch.setenv("JUKEBOX_CONFLICT_RETRY_AFTER", "2")
        monkeypatch.setenv("JUKEBOX_STORE_BACKEND", "POSTGRES")

        config = SchedulerConfig.from_environment()

        assert config.max_conflict_attempts == 3
        assert config.max_batch_size == 7
        assert config.allowed_video_hosts == ("youtu.be", "www.youtube.com")
        assert config.conflict_retry_after_seconds == 2
        assert config.store_backend == "postgres"

    def test_invalid_int_falls_back_to_default(self, monkeypatch) -> None:
        monkeypatch.setenv("JUKEBOX_MAX_BATCH_SIZE", "many")
        assert SchedulerConfig.from_environment().max_batch_size == 20

    def test_blank_hosts_fall_back_to_default(self, monkeypatch) -> None:
        monkeypatch.setenv("JUKEBOX_ALLOWED_VIDEO_HOSTS", " , ")
        config = SchedulerConfig.from_environment()
        assert config.allowed_video_hosts == DEFAULT_ALLOWED_VIDEO_HOSTS

    def test_unknown_backend_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("JUKEBOX_STORE_BACKEND", "sqlite")
        with pytest.raises(ValueError, match="store_backend"):
            SchedulerConfig.from_environment()
