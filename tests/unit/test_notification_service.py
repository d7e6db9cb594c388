import pytest

from workhaven.db import models
from workhaven.services.notification_service import (
    DEFAULT_NEARBY_RADIUS_METERS,
    EVENT_HOT_SPOT,
    EVENT_NEARBY,
    EVENT_NEW_SPOT,
    NotificationService,
    NotificationSettings,
    format_nearby_distance,
)
from workhaven.utils.feature_flags import refresh_feature_flag_cache


def _events(db_session):
    return sorted(n.event_type for n in db_session.query(models.SpotNotification).all())


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("WORKHAVEN_NOTIFY_HOT_SPOTS", "off")
    monkeypatch.setenv("WORKHAVEN_NOTIFY_RADIUS_METERS", "1500")
    monkeypatch.setenv("WORKHAVEN_HOME_LATITUDE", "43.6")
    monkeypatch.setenv("WORKHAVEN_HOME_LONGITUDE", "not-a-number")

    settings = NotificationSettings.from_env()

    assert settings.new_spot_enabled is True
    assert settings.hot_spot_enabled is False
    assert settings.radius_meters == 1500.0
    assert settings.reference_latitude == 43.6
    assert settings.has_reference_location is False


def test_settings_defaults():
    settings = NotificationSettings.from_env()
    assert settings.radius_meters == DEFAULT_NEARBY_RADIUS_METERS
    assert settings.has_reference_location is False


@pytest.mark.parametrize("meters,text", [(250.7, "250m"), (999, "999m"), (1000, "1.0km"), (4321, "4.3km")])
def test_format_nearby_distance(meters, text):
    assert format_nearby_distance(meters) == text


def test_spot_added_records_every_applicable_alert(db_session, make_spot):
    settings = NotificationSettings(reference_latitude=43.6160, reference_longitude=-116.2023)
    spot = make_spot(wifi_rating=5)

    created = NotificationService(db_session, settings).notify_spot_added(spot)
    db_session.commit()

    assert [n.event_type for n in created] == [EVENT_HOT_SPOT, EVENT_NEARBY, EVENT_NEW_SPOT]
    hot, nearby, fresh = created
    assert hot.title == "🔥 Hot Spot Alert!"
    assert hot.message == "Neckar Coffee has a 5/5 WiFi rating - worth checking out!"
    assert nearby.title == "📍 New Work Spot Nearby!"
    assert nearby.message == "Neckar Coffee is just 111m away"
    assert fresh.title == "✨ Fresh Spot Added!"
    assert fresh.message == "Neckar Coffee has been added to WorkHaven"


def test_low_wifi_and_distant_spots_skip_alerts(db_session, make_spot):
    settings = NotificationSettings(reference_latitude=30.2672, reference_longitude=-97.7431)
    spot = make_spot(wifi_rating=3)

    NotificationService(db_session, settings).notify_spot_added(spot)
    db_session.commit()

    assert _events(db_session) == [EVENT_NEW_SPOT]


def test_master_flag_disables_alerts(monkeypatch, db_session, make_spot):
    monkeypatch.setenv("WORKHAVEN_NOTIFICATIONS", "false")
    refresh_feature_flag_cache()

    assert NotificationService(db_session, NotificationSettings()).notify_spot_added(make_spot()) == []


def test_list_mark_read_and_clear(db_session, make_spot):
    service = NotificationService(db_session, NotificationSettings())
    service.notify_spot_added(make_spot(name="One", wifi_rating=5))
    service.notify_spot_added(make_spot(name="Two", wifi_rating=2))
    db_session.commit()

    listing = service.list_notifications()
    assert listing.total == 3
    assert listing.unread_count == 3

    marked = service.mark_read(listing.notifications[0].id)
    assert marked.is_read is True
    assert service.list_notifications(unread_only=True).unread_count == 2
    assert len(service.list_notifications(unread_only=True).notifications) == 2

    assert service.clear_all() == 3
    assert service.list_notifications().total == 0
