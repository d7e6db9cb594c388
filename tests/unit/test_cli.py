import pytest

from workhaven import cli
from workhaven.db import crud
from workhaven.services.cloud_sync import CloudSyncConfig, CloudSyncManager, InMemoryRecordStore
from workhaven.services.import_service import FALLBACK_SPOTS, DataImporter
from workhaven.services.notification_service import NotificationSettings


@pytest.fixture
def importer(tmp_path, mock_geocoder, no_sleep):
    return DataImporter(
        geocoder=mock_geocoder,
        notification_settings=NotificationSettings(),
        data_dir=tmp_path,
        batch_delay=0.0,
        sleep=no_sleep,
    )


@pytest.fixture(autouse=True)
def cli_session(monkeypatch, db_session):
    monkeypatch.setattr(cli, "SessionLocal", lambda: db_session)
    return db_session


def test_seed_inserts_builtin_spots(monkeypatch, capsys, importer, db_session):
    monkeypatch.setattr(cli, "get_data_importer", lambda: importer)

    assert cli.main(["seed"]) == 0
    assert f"Inserted {len(FALLBACK_SPOTS)} spots." in capsys.readouterr().out
    assert crud.count_spots(db_session) == len(FALLBACK_SPOTS)

    assert cli.main(["seed"]) == 0
    assert "Inserted 0 spots." in capsys.readouterr().out


def test_import_single_city(monkeypatch, capsys, importer, db_session):
    monkeypatch.setattr(cli, "get_data_importer", lambda: importer)

    assert cli.main(["import", "--city", "Boise"]) == 0
    out = capsys.readouterr().out
    assert f"Imported {len(FALLBACK_SPOTS)} spots (0 skipped, 0 errors)." in out


def test_import_rejects_unknown_city(capsys):
    with pytest.raises(SystemExit):
        cli.main(["import", "--city", "Atlantis"])
    assert "invalid choice" in capsys.readouterr().err


def test_geocode_disabled_provider(monkeypatch, capsys):
    class DisabledGeocoder:
        is_enabled = False

    monkeypatch.setattr(cli, "get_geocoding_service", lambda: DisabledGeocoder())

    assert cli.main(["geocode"]) == 1
    assert "Geocoding provider is disabled" in capsys.readouterr().err


def test_geocode_fills_missing_coordinates(monkeypatch, capsys, make_spot, mock_geocoder):
    make_spot(name="Placed")
    make_spot(name="Unplaced", latitude=0.0, longitude=0.0)
    monkeypatch.setattr(cli, "get_geocoding_service", lambda: mock_geocoder)

    assert cli.main(["geocode"]) == 0
    assert "Geocoded 1 of 1 spots without coordinates." in capsys.readouterr().out


def test_sync_disabled(monkeypatch, capsys):
    class DisabledManager:
        is_enabled = False

    monkeypatch.setattr(cli, "get_cloud_sync_manager", lambda: DisabledManager())

    assert cli.main(["sync"]) == 1
    assert "Cloud sync is disabled" in capsys.readouterr().err


def test_sync_and_reset(monkeypatch, capsys, make_spot, no_sleep, db_session):
    store = InMemoryRecordStore()
    manager = CloudSyncManager(CloudSyncConfig(provider="memory"), store=store, sleep=no_sleep)
    monkeypatch.setattr(cli, "get_cloud_sync_manager", lambda: manager)
    make_spot()

    assert cli.main(["sync"]) == 0
    assert "Sync complete: 1 uploaded" in capsys.readouterr().out
    assert len(store.records) == 1

    assert cli.main(["reset", "--kind", "complete"]) == 0
    assert "Reset completed successfully!" in capsys.readouterr().out
    assert store.records == {}
    assert crud.count_spots(db_session) == 0


def test_clear(monkeypatch, capsys, importer, make_spot):
    monkeypatch.setattr(cli, "get_data_importer", lambda: importer)
    make_spot()
    assert cli.main(["clear"]) == 0
    assert "Deleted 1 spots." in capsys.readouterr().out


def test_discover_reports_error(monkeypatch, capsys):
    class FailingDiscovery:
        discovery_error = "Network error: offline"

        def discover_spots(self, session, latitude, longitude, radius):
            assert (latitude, longitude) == (43.6, -116.2)
            return []

    monkeypatch.setattr(cli, "get_discovery_service", lambda: FailingDiscovery())

    assert cli.main(["discover", "--latitude", "43.6", "--longitude", "-116.2"]) == 1
    assert "Network error: offline" in capsys.readouterr().err
