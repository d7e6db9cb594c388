import pytest

from workhaven.db import crud, schemas
from workhaven.services.geocoding_service import GeocodingConfig, GeocodingService


@pytest.fixture
def mock_geocoder(no_sleep):
    return GeocodingService(GeocodingConfig(provider="mock", min_interval=0.0), sleep=no_sleep)


@pytest.fixture
def make_spot(db_session):
    def _make(**overrides):
        values = {
            "name": "Neckar Coffee",
            "address": "Boise ID",
            "latitude": 43.6150,
            "longitude": -116.2023,
            "wifi_rating": 5,
            "noise_rating": "Low",
            "outlets": True,
            "tips": "Excellent WiFi speed",
        }
        values.update(overrides)
        return crud.create_spot(db_session, schemas.SpotCreate(**values))

    return _make
