"""
Pytest configuration and fixtures for testing.

Settings are built with `_env_file=None` so a developer's local `.env`
never leaks into the suite.
"""

import pytest
import pytest_asyncio

from direct_relay.server.config import Settings, get_settings
from direct_relay.server.relay import Relay


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """
    Default relay settings, isolated from the environment file.

    Returns:
        Settings: Settings with defaults.
    """
    return Settings(_env_file=None)


@pytest_asyncio.fixture
async def make_relay():
    """
    Factory for relays built from setting overrides.

    Every relay created is closed at teardown so no writer task outlives
    the test's event loop.

    Returns:
        Callable[..., Relay]: factory taking Settings keyword overrides.
    """
    created: list[Relay] = []

    def _make(**overrides) -> Relay:
        relay = Relay(Settings(_env_file=None, **{"shutdown_flush_s": 0.2, **overrides}))
        created.append(relay)
        return relay

    yield _make

    for relay in created:
        await relay.close_all()


@pytest_asyncio.fixture
async def relay(make_relay):
    """
    A fresh relay with default settings and an empty registry.

    Returns:
        Relay: Relay instance.
    """
    return make_relay()
