"""Dependency injection for collector routes.

Dependencies are created once and reused; tests override them through
`app.dependency_overrides` or call `reset_dependencies()`.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from autodemo.collector.notifier import CompletionNotifier
from autodemo.collector.store import AnalyticsStore, InMemoryAnalyticsStore
from autodemo.config.loader import load_config
from autodemo.config.settings import Settings, set_toml_config
from autodemo.observability.logging import get_logger

logger = get_logger(__name__)

_analytics_store: AnalyticsStore | None = None
_notifier: CompletionNotifier | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get collector settings, falling back to defaults without config files."""
    try:
        toml_config = load_config()
        set_toml_config(toml_config)
    except FileNotFoundError:
        logger.warning("config_file_not_found", msg="Using default configuration")
        set_toml_config({})

    return Settings()


async def get_analytics_store() -> AnalyticsStore:
    global _analytics_store
    if _analytics_store is None:
        _analytics_store = InMemoryAnalyticsStore()
        logger.info("analytics_store_created", backend="inmemory")
    return _analytics_store


async def get_notifier(settings: Annotated[Settings, Depends(get_settings)]) -> CompletionNotifier:
    global _notifier
    if _notifier is None:
        webhook = settings.collector.slack_webhook_url
        _notifier = CompletionNotifier(
            webhook_url=webhook.get_secret_value() if webhook else None,
            timeout_seconds=settings.collector.notify_timeout_seconds,
        )
    return _notifier


SettingsDep = Annotated[Settings, Depends(get_settings)]
AnalyticsStoreDep = Annotated[AnalyticsStore, Depends(get_analytics_store)]
NotifierDep = Annotated[CompletionNotifier, Depends(get_notifier)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies. Used for testing."""
    global _analytics_store, _notifier

    if _notifier is not None:
        await _notifier.close()

    _analytics_store = None
    _notifier = None
    get_settings.cache_clear()
