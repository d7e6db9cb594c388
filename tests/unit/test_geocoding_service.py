import pytest
import requests

from workhaven.services import geocoding_service
from workhaven.services.geocoding_service import (
    BaseGeocodingProvider,
    GeocodingConfig,
    GeocodingError,
    GeocodingService,
    Placemark,
)


class _FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class _FailingProvider(BaseGeocodingProvider):
    def geocode(self, address):
        raise requests.ConnectionError("offline")


class _FixedProvider(BaseGeocodingProvider):
    def __init__(self, latitude, longitude):
        self.placemark = Placemark(latitude=latitude, longitude=longitude, name="Fixed")

    def geocode(self, address):
        return [self.placemark]


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("GEOCODING_PROVIDER", "mock")
    assert GeocodingConfig.from_env().provider == "mock"
    monkeypatch.setenv("GEOCODING_PROVIDER", "osm")
    monkeypatch.setenv("GEOCODING_MIN_INTERVAL_SECONDS", "2.5")
    config = GeocodingConfig.from_env()
    assert (config.provider, config.min_interval) == ("nominatim", 2.5)
    monkeypatch.setenv("GEOCODING_PROVIDER", "carrier-pigeon")
    assert GeocodingConfig.from_env().is_enabled is False


def test_blank_address_is_invalid(mock_geocoder):
    with pytest.raises(GeocodingError) as exc:
        mock_geocoder.geocode_address("   ")
    assert exc.value.code == GeocodingError.INVALID_ADDRESS
    assert str(exc.value) == "Invalid address provided"


def test_disabled_provider_reports_failure():
    service = GeocodingService(GeocodingConfig(provider="disabled"))
    assert service.is_enabled is False
    with pytest.raises(GeocodingError) as exc:
        service.geocode_address("Boise ID")
    assert exc.value.code == GeocodingError.GEOCODING_FAILED
    assert str(exc.value) == "Geocoding failed: geocoding provider is disabled"


def test_provider_network_failure_is_wrapped(no_sleep):
    service = GeocodingService(GeocodingConfig(provider="mock", min_interval=0.0), provider=_FailingProvider())
    with pytest.raises(GeocodingError) as exc:
        service.geocode_address("Boise ID")
    assert exc.value.code == GeocodingError.GEOCODING_FAILED


def test_mock_geocoding_is_deterministic(mock_geocoder):
    first = mock_geocoder.coordinates_for("Neckar Coffee, Boise ID")
    second = mock_geocoder.coordinates_for("neckar coffee, boise id")
    assert first == second
    assert GeocodingService.is_valid_coordinate(*first)


def test_requests_are_spaced_by_min_interval(no_sleep):
    service = GeocodingService(GeocodingConfig(provider="mock", min_interval=1.0), sleep=no_sleep)
    service.geocode_address("Boise ID")
    service.geocode_address("Austin TX")
    assert len(no_sleep.calls) == 1
    assert 0 < no_sleep.calls[0] <= 1.0


def test_nominatim_parses_placemarks(monkeypatch):
    payload = [
        {
            "lat": "43.6150",
            "lon": "-116.2023",
            "name": "Neckar Coffee",
            "address": {
                "house_number": "803",
                "road": "West Bannock Street",
                "city": "Boise",
                "state": "Idaho",
                "country": "United States",
            },
        },
        {"lat": "not-a-number", "lon": "0"},
    ]
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured.update(url=url, params=params, headers=headers)
        return _FakeResponse(payload=payload)

    monkeypatch.setattr(geocoding_service.requests, "get", fake_get)
    service = GeocodingService(
        GeocodingConfig(provider="nominatim", base_url="https://geo.test/", user_agent="workhaven-tests", min_interval=0.0)
    )

    placemarks = service.geocode_address("Neckar Coffee, Boise")

    assert captured["url"] == "https://geo.test/search"
    assert captured["params"]["q"] == "Neckar Coffee, Boise"
    assert captured["headers"]["User-Agent"] == "workhaven-tests"
    assert len(placemarks) == 1
    assert placemarks[0].formatted_address == (
        "Neckar Coffee, 803 West Bannock Street, Boise, Idaho, United States"
    )


def test_nominatim_rate_limit(monkeypatch):
    monkeypatch.setattr(geocoding_service.requests, "get", lambda *a, **k: _FakeResponse(status_code=429))
    service = GeocodingService(GeocodingConfig(provider="nominatim", base_url="https://geo.test", min_interval=0.0))
    with pytest.raises(GeocodingError) as exc:
        service.geocode_address("Boise ID")
    assert exc.value.code == GeocodingError.RATE_LIMIT_EXCEEDED


def test_verify_location_fills_missing_coordinates(db_session, make_spot, mock_geocoder):
    spot = make_spot(latitude=0.0, longitude=0.0)
    expected = mock_geocoder.coordinates_for(spot.address)

    assert mock_geocoder.verify_spot_location(db_session, spot) is True
    assert (spot.latitude, spot.longitude) == expected
    # Nothing moved on the second pass
    assert mock_geocoder.verify_spot_location(db_session, spot) is False


def test_verify_location_ignores_small_moves(db_session, make_spot, no_sleep):
    spot = make_spot(latitude=43.6150, longitude=-116.2023)
    service = GeocodingService(
        GeocodingConfig(provider="mock", min_interval=0.0), provider=_FixedProvider(43.6155, -116.2023)
    )
    # ~55 m away
    assert service.verify_spot_location(db_session, spot) is False
    assert spot.latitude == 43.6150

    service = GeocodingService(
        GeocodingConfig(provider="mock", min_interval=0.0), provider=_FixedProvider(43.6250, -116.2023)
    )
    assert service.verify_spot_location(db_session, spot) is True
    assert spot.latitude == 43.6250


def test_verify_location_keeps_spot_when_lookup_fails(db_session, make_spot):
    spot = make_spot(latitude=43.6150, longitude=-116.2023)
    service = GeocodingService(GeocodingConfig(provider="mock", min_interval=0.0), provider=_FailingProvider())

    assert service.verify_spot_location(db_session, spot) is False
    assert (spot.latitude, spot.longitude) == (43.6150, -116.2023)


def test_batch_geocode_spots(db_session, make_spot, mock_geocoder, no_sleep):
    spots = [make_spot(name=f"Spot {i}", address=f"{i} Main St, Boise ID", latitude=0.0, longitude=0.0)
             for i in range(3)]

    assert mock_geocoder.batch_geocode_spots(db_session, spots, delay=0.5) == 3
    assert no_sleep.calls == [0.5, 0.5]
    assert mock_geocoder.progress == 1.0
