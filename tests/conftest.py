"""Shared test fixtures for the autodemo test suite."""

import asyncio
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from autodemo.analytics.transport import AnalyticsTransport
from autodemo.config.models.orchestrator import OrchestratorConfig
from autodemo.dom.inmemory import InMemoryDocument
from autodemo.exceptions import AnalyticsDeliveryError
from autodemo.models.events import AnalyticsBatch
from autodemo.models.step import Step


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"AUTODEMO_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings caches before and after each test."""
    from autodemo.collector.dependencies import get_settings as get_collector_settings
    from autodemo.config import get_settings

    get_settings.cache_clear()
    get_collector_settings.cache_clear()
    yield
    get_settings.cache_clear()
    get_collector_settings.cache_clear()


class RecordingTransport(AnalyticsTransport):
    """Transport that records batches instead of sending them.

    Set `fail` to make deliveries raise; set `gate` to hold deliveries
    until the event is set.
    """

    def __init__(self) -> None:
        self.batches: list[AnalyticsBatch] = []
        self.beacons: list[AnalyticsBatch] = []
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.closed = False

    @property
    def attempts(self) -> int:
        return len(self.batches)

    async def send(self, batch: AnalyticsBatch) -> None:
        self.batches.append(batch)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise AnalyticsDeliveryError("Failed to flush demo analytics: 503", status_code=503)

    def send_beacon(self, batch: AnalyticsBatch) -> bool:
        self.beacons.append(batch)
        return True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> RecordingTransport:
    """Analytics transport recording every delivery attempt."""
    return RecordingTransport()


@pytest.fixture
def document() -> InMemoryDocument:
    """Empty in-memory document."""
    return InMemoryDocument()


@pytest.fixture
def fast_config() -> OrchestratorConfig:
    """Orchestrator timing shrunk for tests."""
    return OrchestratorConfig(
        wait_timeout_ms=60,
        wait_slice_ms=5,
        selector_poll_interval_ms=5,
        manual_settle_cap_ms=10,
    )


async def _noop() -> None:
    return None


@pytest.fixture
def make_step() -> Callable[..., Step]:
    """Factory for steps whose action resolves immediately by default."""

    def _make_step(step_id: str, **kwargs: Any) -> Step:
        kwargs.setdefault("narration", step_id.upper())
        kwargs.setdefault("planned_duration", 10)
        kwargs.setdefault("action", _noop)
        return Step(id=step_id, **kwargs)

    return _make_step
