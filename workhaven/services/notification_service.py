"""
Notification service: stored spot alerts (new spot, hot spot, nearby).

Each kind is toggled by settings read from the environment; nearby alerts
need a reference location. Records are listed through the notifications API.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from workhaven.db import models, schemas
from workhaven.db.repositories import notifications as repo_notifications
from workhaven.utils import feature_flags
from workhaven.utils.geo import distance_between, has_coordinates

logger = logging.getLogger(__name__)

EVENT_NEW_SPOT = 'new_spot'
EVENT_HOT_SPOT = 'hot_spot'
EVENT_NEARBY = 'nearby'

HOT_SPOT_WIFI_THRESHOLD = 4
DEFAULT_NEARBY_RADIUS_METERS = 5000.0


def _env_bool(name: str, default: bool = True) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, value)
        return None


@dataclass
class NotificationSettings:
    new_spot_enabled: bool = True
    hot_spot_enabled: bool = True
    nearby_enabled: bool = True
    radius_meters: float = DEFAULT_NEARBY_RADIUS_METERS
    reference_latitude: Optional[float] = None
    reference_longitude: Optional[float] = None

    @classmethod
    def from_env(cls) -> "NotificationSettings":
        radius = _env_float("WORKHAVEN_NOTIFY_RADIUS_METERS")
        return cls(
            new_spot_enabled=_env_bool("WORKHAVEN_NOTIFY_NEW_SPOTS"),
            hot_spot_enabled=_env_bool("WORKHAVEN_NOTIFY_HOT_SPOTS"),
            nearby_enabled=_env_bool("WORKHAVEN_NOTIFY_NEARBY"),
            radius_meters=radius if radius and radius > 0 else DEFAULT_NEARBY_RADIUS_METERS,
            reference_latitude=_env_float("WORKHAVEN_HOME_LATITUDE"),
            reference_longitude=_env_float("WORKHAVEN_HOME_LONGITUDE"),
        )

    @property
    def has_reference_location(self) -> bool:
        return self.reference_latitude is not None and self.reference_longitude is not None


def format_nearby_distance(meters: float) -> str:
    if meters < 1000:
        return f"{int(meters)}m"
    return f"{meters / 1000:.1f}km"


class NotificationService:
    """Creates notification records for spot events."""

    def __init__(self, db: Session, settings: Optional[NotificationSettings] = None):
        self.db = db
        self.settings = settings or NotificationSettings.from_env()

    def _record(self, spot: models.Spot, event_type: str, title: str, message: str):
        payload = schemas.SpotNotificationCreate(
            event_type=event_type,
            title=title,
            message=message,
            spot_id=spot.id,
        )
        return repo_notifications.create_notification(self.db, payload, commit=False)

    def notify_new_spot(self, spot: models.Spot):
        if not self.settings.new_spot_enabled:
            return None
        return self._record(
            spot,
            EVENT_NEW_SPOT,
            "✨ Fresh Spot Added!",
            f"{spot.name or 'A new work spot'} has been added to WorkHaven",
        )

    def notify_hot_spot(self, spot: models.Spot):
        if not self.settings.hot_spot_enabled or (spot.wifi_rating or 0) < HOT_SPOT_WIFI_THRESHOLD:
            return None
        return self._record(
            spot,
            EVENT_HOT_SPOT,
            "🔥 Hot Spot Alert!",
            f"{spot.name or 'This spot'} has a {spot.wifi_rating}/5 WiFi rating - worth checking out!",
        )

    def notify_nearby(self, spot: models.Spot):
        if not self.settings.nearby_enabled or not self.settings.has_reference_location:
            return None
        if not has_coordinates(spot.latitude, spot.longitude):
            return None
        distance = distance_between(
            self.settings.reference_latitude,
            self.settings.reference_longitude,
            spot.latitude,
            spot.longitude,
        )
        if distance > self.settings.radius_meters:
            return None
        return self._record(
            spot,
            EVENT_NEARBY,
            "📍 New Work Spot Nearby!",
            f"{spot.name or 'A new spot'} is just {format_nearby_distance(distance)} away",
        )

    def notify_spot_added(self, spot: models.Spot) -> List[models.SpotNotification]:
        """Record every applicable alert for a freshly stored spot.

        Does not commit; the caller's transaction owns the records.
        """
        if not feature_flags.notifications_enabled():
            return []
        created = [
            self.notify_hot_spot(spot),
            self.notify_nearby(spot),
            self.notify_new_spot(spot),
        ]
        return [n for n in created if n is not None]

    def list_notifications(self, *, skip: int = 0, limit: int = 50, unread_only: bool = False):
        items = repo_notifications.get_notifications(self.db, skip, limit, unread_only=unread_only)
        return schemas.NotificationListResponse(
            notifications=[schemas.SpotNotification.model_validate(n) for n in items],
            total=repo_notifications.count_notifications(self.db),
            unread_count=repo_notifications.count_notifications(self.db, unread_only=True),
        )

    def mark_read(self, notification_id):
        return repo_notifications.mark_notification_read(self.db, notification_id)

    def clear_all(self) -> int:
        deleted = repo_notifications.delete_all_notifications(self.db)
        logger.info("Cleared notifications", extra={"deleted": deleted})
        return deleted
