"""
Test configuration and fixtures for the URL shortener.
Every test gets its own SQLite file, so tests never share state.
"""

import time

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_app.cache.strategies import InMemoryCache
from shortlink_app.config import Settings
from shortlink_app.database.connection import Database
from shortlink_app.services.url_service import ShortenerService
from shortlink_app.storage.strategies import SQLURLStorage


@pytest.fixture(scope="function")
def settings(tmp_path):
    """Settings pointing at a throwaway database and the in-memory cache."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        cache_backend="memory",
        click_workers=2,
        click_drain_timeout=2.0,
        log_level="WARNING",
    )


@pytest.fixture(scope="function")
def database(settings):
    db = Database.from_settings(settings)
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture(scope="function")
def storage(database):
    return SQLURLStorage(database)


@pytest.fixture(scope="function")
def cache():
    return InMemoryCache()


@pytest.fixture(scope="function")
def service(storage, cache):
    return ShortenerService(storage=storage, cache=cache)


@pytest.fixture(scope="function")
def app(settings):
    return create_app(settings)


@pytest.fixture(scope="function")
def client(app):
    """
    Test client with the full lifespan running (database, cache and
    click workers are started and stopped around each test).
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def wait_until():
    """Poll a condition until it holds; click recording is asynchronous."""
    def _wait(condition, timeout: float = 3.0, interval: float = 0.05):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if condition():
                return True
            time.sleep(interval)
        return condition()

    return _wait
