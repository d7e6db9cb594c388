import os

# Configure providers before any workhaven module reads the environment
os.environ["PYTEST_RUNNING"] = "1"
os.environ.setdefault("GEOCODING_PROVIDER", "mock")
os.environ.setdefault("CLOUD_SYNC_PROVIDER", "memory")
os.environ.setdefault("DISCOVERY_PLACE_PROVIDER", "mock")
os.environ.setdefault("SYNC_AFTER_IMPORT_DELAY_SECONDS", "0")
os.environ["WORKHAVEN_AUTO_IMPORT"] = "false"

import pytest

from workhaven.db import database, models
from workhaven.services import (
    reset_cloud_sync_manager_for_tests,
    reset_data_importer_for_tests,
    reset_discovery_service_for_tests,
    reset_geocoding_service_for_tests,
)
from workhaven.utils.feature_flags import refresh_feature_flag_cache
from workhaven.workers.startup_import import reset_startup_state_for_tests

_SCRUBBED_ENV = (
    "GROK_API_KEY",
    "WORKHAVEN_CLOUD_SYNC",
    "WORKHAVEN_DISCOVERY",
    "WORKHAVEN_NOTIFICATIONS",
    "WORKHAVEN_NOTIFY_NEW_SPOTS",
    "WORKHAVEN_NOTIFY_HOT_SPOTS",
    "WORKHAVEN_NOTIFY_NEARBY",
    "WORKHAVEN_NOTIFY_RADIUS_METERS",
    "WORKHAVEN_HOME_LATITUDE",
    "WORKHAVEN_HOME_LONGITUDE",
)


def _reset_singletons():
    refresh_feature_flag_cache()
    reset_geocoding_service_for_tests()
    reset_data_importer_for_tests()
    reset_cloud_sync_manager_for_tests()
    reset_discovery_service_for_tests()
    reset_startup_state_for_tests()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Clear env-driven settings and cached services between tests."""
    for name in _SCRUBBED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WORKHAVEN_SECRETS_FILE", str(tmp_path / "secrets.env"))
    monkeypatch.setenv("WORKHAVEN_DATA_DIR", str(tmp_path / "data"))
    _reset_singletons()
    yield
    _reset_singletons()


@pytest.fixture(autouse=True)
def db_session():
    """Fresh schema per test on the shared in-memory SQLite engine."""
    database.reset_schema_state()
    models.Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        models.Base.metadata.drop_all(bind=database.engine)
        database.reset_schema_state()


@pytest.fixture
def no_sleep():
    """Sleep replacement that records the requested delays."""
    calls = []

    def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from workhaven.api.main import app

    yield TestClient(app)
    app.dependency_overrides.clear()
