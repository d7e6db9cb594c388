import pytest

from workhaven.db import crud, models, schemas
from workhaven.db.repositories import notifications as repo_notifications
from workhaven.services import import_service
from workhaven.services.import_service import (
    CsvSpot,
    DataImporter,
    DataImportError,
    generate_tips,
    map_noise_rating,
    map_wifi_rating,
    outlets_for,
    parse_csv,
)
from workhaven.services.notification_service import NotificationSettings

BOISE_CSV = """name,city,wifi,noise,photo_url,lat,lng
Neckar Coffee,Boise ID,Strong,Low,,43.6150,-116.2023
Flying M Coffee,Boise ID,Available,Medium,,43.6125,-116.2025
"Push & Pour, Downtown",Boise ID,Fast,Variable,,,
"""


@pytest.fixture
def importer(tmp_path, mock_geocoder, no_sleep):
    return DataImporter(
        geocoder=mock_geocoder,
        notification_settings=NotificationSettings(),
        data_dir=tmp_path,
        batch_delay=0.0,
        sleep=no_sleep,
    )


def _write_city(tmp_path, city, text):
    (tmp_path / f"{city}_Work_Spots.csv").write_text(text, encoding="utf-8")


# --- CSV parsing and mapping -------------------------------------------


def test_parse_csv_rows_and_errors():
    text = (
        "name,city,wifi,noise,photo_url,lat,lng\n"
        "Neckar Coffee,Boise ID,Strong,Low,,43.6150,-116.2023\n"
        "Too Short,Boise ID,Fast\n"
        ",Boise ID,Fast,Low,,43.6,-116.2\n"
        "No Coords,Boise ID,Free,High,,,\n"
        "Bad Coords,Boise ID,Slow,Low,,200.0,-116.2\n"
        "\n"
    )
    result = parse_csv(text)

    assert result.errors == 2
    assert [r.name for r in result.rows] == ["Neckar Coffee", "No Coords", "Bad Coords"]
    neckar, no_coords, bad_coords = result.rows
    assert (neckar.latitude, neckar.longitude, neckar.needs_geocoding) == (43.6150, -116.2023, False)
    assert no_coords.needs_geocoding is True
    assert (bad_coords.latitude, bad_coords.longitude, bad_coords.needs_geocoding) == (0.0, 0.0, True)


def test_parse_csv_handles_quoted_commas():
    result = parse_csv(BOISE_CSV)
    assert result.rows[2].name == "Push & Pour, Downtown"
    assert result.rows[2].needs_geocoding is True


def test_parse_csv_header_only_is_empty_file():
    with pytest.raises(DataImportError) as exc:
        parse_csv("name,city,wifi,noise,photo_url,lat,lng\n")
    assert exc.value.code == DataImportError.EMPTY_FILE


@pytest.mark.parametrize(
    "wifi,rating",
    [("Fast", 5), ("strong", 5), ("Available", 4), ("open", 4), ("Free", 3), ("slow", 2), ("mystery", 3), ("", 3)],
)
def test_map_wifi_rating(wifi, rating):
    assert map_wifi_rating(wifi) == rating


def test_map_noise_and_outlets():
    assert map_noise_rating("low") == "Low"
    assert map_noise_rating("Variable") == "Medium"
    assert outlets_for("Available") is True
    assert outlets_for("Free") is False


def test_generate_tips():
    row = CsvSpot("Neckar Coffee", "Boise ID", "Strong", "Low", None, 43.6, -116.2)
    assert generate_tips(row) == "Excellent WiFi speed. Quiet environment. Power outlets available"
    row = CsvSpot("Library", "Boise ID", "Free", "Medium", None, 43.6, -116.2)
    assert generate_tips(row) == "Free WiFi"


# --- import flow ---------------------------------------------------------


def test_import_city_from_csv(importer, tmp_path, db_session):
    _write_city(tmp_path, "Boise", BOISE_CSV)

    status = importer.import_city("Boise", db=db_session)

    assert status.imported == 3
    assert status.geocoded == 1
    assert status.errors == 0
    assert status.progress == 1.0
    assert status.is_importing is False
    assert status.status == "Import completed successfully! 3 spots imported."

    neckar = crud.get_spot_by_name_and_address(db_session, "Neckar Coffee", "Boise ID")
    assert neckar.wifi_rating == 5
    assert neckar.noise_rating == "Low"
    assert neckar.outlets is True
    assert neckar.tips == "Excellent WiFi speed. Quiet environment. Power outlets available"

    geocoded = crud.get_spot_by_name_and_address(db_session, "Push & Pour, Downtown", "Boise ID")
    assert (geocoded.latitude, geocoded.longitude) != (0.0, 0.0)
    assert geocoded.noise_rating == "Medium"


def test_import_city_is_idempotent(importer, tmp_path, db_session):
    _write_city(tmp_path, "Boise", BOISE_CSV)
    importer.import_city("Boise", db=db_session)
    count = crud.count_spots(db_session)

    status = importer.import_city("Boise", db=db_session)

    assert crud.count_spots(db_session) == count
    assert status.imported == 0
    assert status.status == "Skipped import - Boise spots already exist"


def test_missing_csv_falls_back_to_built_in_rows(importer, db_session):
    status = importer.import_city("Austin", db=db_session)

    assert status.imported == len(import_service.FALLBACK_SPOTS)
    assert crud.count_spots(db_session) == len(import_service.FALLBACK_SPOTS)

    # The fallback rows are already present, so another city only skips them
    status = importer.import_city("Seattle", db=db_session)
    assert status.imported == 0
    assert status.skipped == len(import_service.FALLBACK_SPOTS)
    assert crud.count_spots(db_session) == len(import_service.FALLBACK_SPOTS)


def test_import_skipped_while_another_import_runs(importer, tmp_path, db_session):
    _write_city(tmp_path, "Boise", BOISE_CSV)
    assert import_service._IMPORT_LOCK.acquire(blocking=False)
    try:
        assert importer.is_importing is True
        importer.import_city("Boise", db=db_session)
    finally:
        import_service._IMPORT_LOCK.release()
    assert crud.count_spots(db_session) == 0


def test_geocoding_batches_sleep_between_batches(tmp_path, mock_geocoder, no_sleep, db_session):
    rows = "\n".join(f"Spot {i},Boise ID,Fast,Low,,," for i in range(5))
    _write_city(tmp_path, "Boise", "name,city,wifi,noise,photo_url,lat,lng\n" + rows + "\n")
    importer = DataImporter(
        geocoder=mock_geocoder, data_dir=tmp_path, batch_size=2, batch_delay=1.0, sleep=no_sleep
    )

    status = importer.import_city("Boise", db=db_session)

    assert status.geocoded == 5
    # three batches, two pauses
    assert no_sleep.calls == [1.0, 1.0]


def test_import_records_notifications(importer, tmp_path, db_session):
    _write_city(tmp_path, "Boise", BOISE_CSV)
    importer.import_city("Boise", db=db_session)

    hot = repo_notifications.get_notifications(db_session, 0, 50, event_type="hot_spot")
    fresh = repo_notifications.get_notifications(db_session, 0, 50, event_type="new_spot")
    # Strong and Fast map to 5, Available to 4
    assert len(hot) == 3
    assert len(fresh) == 3


def test_seed_if_empty(importer, db_session):
    assert importer.seed_if_empty(db=db_session) == len(import_service.FALLBACK_SPOTS)
    assert importer.seed_if_empty(db=db_session) == 0


def test_seed_preview_spots(importer, db_session):
    assert importer.seed_preview_spots(db=db_session) == len(import_service.PREVIEW_SPOTS)
    assert importer.seed_preview_spots(db=db_session) == 0


def test_cleanup_duplicates_keeps_newest(importer, db_session):
    payload = schemas.SpotCreate(name="Dup", address="Boise ID", wifi_rating=2)
    older = crud.create_spot(db_session, payload)
    newer = crud.create_spot(db_session, payload.model_copy(update={"wifi_rating": 4}))
    newer.last_modified = models.now_utc()
    db_session.commit()

    assert importer.cleanup_duplicates(db=db_session) == 1
    remaining = crud.get_all_spots(db_session)
    assert [s.id for s in remaining] == [newer.id]
    assert crud.get_spot(db_session, older.id) is None


def test_clear_all_data(importer, db_session, make_spot):
    make_spot(name="A")
    make_spot(name="B")
    assert importer.clear_all_data(db=db_session) == 2
    assert crud.count_spots(db_session) == 0
