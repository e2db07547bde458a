"""Unit tests for collector dependency wiring."""

from pathlib import Path

import pytest

from autodemo.collector import dependencies
from autodemo.collector.dependencies import (
    get_analytics_store,
    get_notifier,
    get_settings,
    reset_dependencies,
)
from autodemo.config.settings import Settings


@pytest.fixture(autouse=True)
async def clean_dependencies():
    await reset_dependencies()
    yield
    await reset_dependencies()


@pytest.mark.asyncio
class TestDependencies:
    """Tests for cached collector dependencies."""

    async def test_store_is_singleton(self) -> None:
        """The same store instance is shared between requests."""
        assert await get_analytics_store() is await get_analytics_store()

    async def test_notifier_uses_configured_webhook(self) -> None:
        """The webhook secret from settings enables the notifier."""
        settings = Settings(collector={"slack_webhook_url": "https://hooks.slack.com/x"})

        notifier = await get_notifier(settings)

        assert notifier.enabled is True

    async def test_notifier_disabled_by_default(self) -> None:
        """Without a webhook the notifier does nothing."""
        notifier = await get_notifier(Settings())
        assert notifier.enabled is False

    async def test_reset_clears_singletons(self) -> None:
        """reset_dependencies drops the cached store and notifier."""
        store = await get_analytics_store()
        await get_notifier(Settings())

        await reset_dependencies()

        assert dependencies._notifier is None
        assert await get_analytics_store() is not store

    async def test_settings_fall_back_without_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Missing config files yield default settings instead of an error."""
        empty = tmp_path / "empty"
        empty.mkdir()
        monkeypatch.setenv("AUTODEMO_CONFIG_DIR", str(empty))

        settings = get_settings()

        assert settings.collector.retention_seconds == 2592000
