import pytest
import requests

from workhaven.db import crud
from workhaven.services import discovery_service
from workhaven.services.discovery_service import (
    API_KEY_PLACEHOLDER,
    DiscoveryConfig,
    DiscoveryError,
    GrokEnrichmentClient,
    MockPlaceProvider,
    Place,
    SpotDiscoveryService,
    load_grok_api_key,
    parse_enrichment_response,
)

BOISE = (43.6150, -116.2023)


class _StaticEnrichment(GrokEnrichmentClient):
    def __init__(self):
        super().__init__("test-key")
        self.calls = []

    def complete(self, prompt):
        self.calls.append(prompt)
        return 'Sure! {"wifi": 5, "noise": "low", "plugs": "Yes", "tip": "Window seats have outlets"}'


class _ContactProvider(MockPlaceProvider):
    def search(self, query, latitude, longitude, radius_meters):
        return [Place(name="Match", address="Somewhere", latitude=latitude, longitude=longitude,
                      phone_number="208-555-0199", website_url="https://neckar.example")]


class _OfflineProvider(MockPlaceProvider):
    def search(self, query, latitude, longitude, radius_meters):
        raise requests.ConnectionError("offline")


@pytest.fixture
def service(no_sleep):
    return SpotDiscoveryService(DiscoveryConfig(provider="mock"), sleep=no_sleep)


# --- enrichment parsing ---------------------------------------------------


def test_parse_enrichment_extracts_embedded_json():
    data = parse_enrichment_response(
        'Here you go:\n```json\n{"wifi": 4, "noise": "High", "plugs": true, "tip": "Busy mornings"}\n```'
    )
    assert (data.wifi, data.noise, data.plugs, data.tip) == (4, "High", True, "Busy mornings")


def test_parse_enrichment_clamps_and_normalizes():
    data = parse_enrichment_response('{"wifi": 9, "noise": "deafening", "plugs": "no", "tip": "x"}')
    assert (data.wifi, data.noise, data.plugs) == (5, "Medium", False)
    assert parse_enrichment_response('{"wifi": 0, "noise": "Low", "plugs": false, "tip": ""}').wifi == 1


@pytest.mark.parametrize(
    "text",
    ["no json here", "{not valid json}", '{"wifi": 4}', '["wifi", 4]', '{"wifi": "fast", "noise": "Low", "plugs": 1, "tip": ""}'],
)
def test_parse_enrichment_falls_back_to_defaults(text):
    data = parse_enrichment_response(text)
    assert (data.wifi, data.noise, data.plugs, data.tip) == (3, "Medium", False, "Auto-discovered")



@pytest.mark.parametrize("tip", ["null", '""', '"   "'])
def test_parse_enrichment_blank_tip_uses_default(tip):
    data = parse_enrichment_response('{"wifi": 4, "noise": "Low", "plugs": true, "tip": ' + tip + "}")
    assert (data.wifi, data.tip) == (4, "Auto-discovered")


def test_error_messages_without_detail():
    assert str(DiscoveryError(DiscoveryError.NETWORK_ERROR)) == "Network error"
    assert str(DiscoveryError(DiscoveryError.API_FAILURE)) == "API enrichment failed"
    assert str(DiscoveryError(DiscoveryError.API_FAILURE, "HTTP error: 500")) == "API enrichment failed: HTTP error: 500"
    assert str(DiscoveryError(DiscoveryError.INVALID_RESPONSE, "ignored")) == "Invalid response from enrichment API"


# --- API key handling -------------------------------------------------------


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("GROK_API_KEY", "  env-key  ")
    assert load_grok_api_key() == "env-key"


def test_api_key_from_secrets_file(monkeypatch, tmp_path):
    secrets = tmp_path / "secrets.env"
    secrets.write_text("GROK_API_KEY=file-key\n", encoding="utf-8")
    monkeypatch.setenv("WORKHAVEN_SECRETS_FILE", str(secrets))
    assert load_grok_api_key() == "file-key"


def test_placeholder_key_counts_as_missing(monkeypatch, tmp_path, service):
    secrets = tmp_path / "secrets.env"
    secrets.write_text(f"GROK_API_KEY={API_KEY_PLACEHOLDER}\n", encoding="utf-8")
    monkeypatch.setenv("WORKHAVEN_SECRETS_FILE", str(secrets))

    assert load_grok_api_key() is None
    assert service.has_api_key() is False
    assert service.api_key_status == (
        f"API key not configured - add GROK_API_KEY to {secrets} or the environment"
    )


def test_key_added_at_runtime_is_picked_up(monkeypatch, service):
    assert service.has_api_key() is False
    monkeypatch.setenv("GROK_API_KEY", "late-key")
    assert service.has_api_key() is True
    assert service.api_key_status == "API key configured"


def test_enrich_without_key_uses_defaults():
    data = GrokEnrichmentClient(None).enrich("Neckar Coffee", "Boise ID")
    assert (data.wifi, data.noise, data.plugs, data.tip) == (3, "Medium", False, "Auto-discovered")


def test_enrich_http_error_uses_defaults(monkeypatch):
    class _Response:
        status_code = 500

    monkeypatch.setattr(discovery_service.requests, "post", lambda *a, **k: _Response())
    data = GrokEnrichmentClient("key").enrich("Neckar Coffee", "Boise ID")
    assert data.tip == "Auto-discovered"


def test_complete_without_key_raises():
    with pytest.raises(DiscoveryError) as exc:
        GrokEnrichmentClient("").complete("hello")
    assert exc.value.code == DiscoveryError.API_FAILURE


# --- discovery flow -----------------------------------------------------------


def test_search_places_dedupes_and_caps(service):
    places = service.search_places(*BOISE, 5000)
    keys = [p.coordinate_key for p in places]
    assert len(keys) == len(set(keys))
    assert 0 < len(places) <= discovery_service.MAX_DISCOVERED_SPOTS


def test_discover_returns_existing_spots_in_range(service, db_session, make_spot):
    nearby = make_spot(name="Neckar Coffee", latitude=BOISE[0], longitude=BOISE[1])
    make_spot(name="Far Away", latitude=30.2672, longitude=-97.7431)

    spots = service.discover_spots(db_session, *BOISE, 5000)

    assert [s.id for s in spots] == [nearby.id]
    assert service.discovery_summary == "Discovered 1 work spots"
    assert crud.count_spots(db_session) == 2


def test_discover_saves_enriched_places(db_session, no_sleep):
    enrichment = _StaticEnrichment()
    service = SpotDiscoveryService(
        DiscoveryConfig(provider="mock"), enrichment_client=enrichment, sleep=no_sleep
    )

    spots = service.discover_spots(db_session, *BOISE, 5000)

    assert spots
    assert len(enrichment.calls) == len(spots)
    assert crud.count_spots(db_session) == len(spots)
    first = spots[0]
    assert (first.wifi_rating, first.noise_rating, first.outlets) == (5, "Low", True)
    assert first.tips == "Window seats have outlets"
    assert service.is_discovering is False
    assert service.discovery_error is None


def test_discover_without_key_saves_defaults(service, db_session):
    spots = service.discover_spots(db_session, *BOISE, 5000)
    assert spots
    assert {(s.wifi_rating, s.noise_rating, s.tips) for s in spots} == {(3, "Medium", "Auto-discovered")}


def test_discover_network_failure_sets_error(db_session, no_sleep):
    service = SpotDiscoveryService(
        DiscoveryConfig(provider="mock"), place_provider=_OfflineProvider(), sleep=no_sleep
    )

    assert service.discover_spots(db_session, *BOISE, 5000) == []
    assert service.discovery_error == "Network error: offline"
    assert service.status().error == "Network error: offline"

    service.clear_error()
    assert service.status().error is None



class _UntidyProvider(MockPlaceProvider):
    def search(self, query, latitude, longitude, radius_meters):
        return [
            Place(name="   ", address=" 1010 W Jefferson St ", latitude=latitude, longitude=longitude),
            Place(name="Lost Cafe", address="Nowhere", latitude=95.0, longitude=longitude),
        ]


def test_discover_tidies_blank_names_and_skips_invalid_places(db_session, no_sleep):
    service = SpotDiscoveryService(
        DiscoveryConfig(provider="mock"), place_provider=_UntidyProvider(), sleep=no_sleep
    )

    spots = service.discover_spots(db_session, *BOISE, 5000)

    assert [(s.name, s.address) for s in spots] == [("Unknown", "1010 W Jefferson St")]
    assert service.discovery_error is None
    assert crud.count_spots(db_session) == 1


def test_refresh_business_details(db_session, make_spot, no_sleep):
    spot = make_spot(phone_number=None, website_url=None)
    service = SpotDiscoveryService(
        DiscoveryConfig(provider="mock"), place_provider=_ContactProvider(), sleep=no_sleep
    )

    assert service.refresh_business_details(db_session) == 1
    db_session.refresh(spot)
    assert spot.phone_number == "208-555-0199"
    assert spot.website_url == "https://neckar.example"
