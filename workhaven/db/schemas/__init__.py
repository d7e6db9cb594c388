"""
Domain-split Pydantic schemas with a compatibility aggregator.

Re-exports every request/response model so callers can write
``from workhaven.db import schemas``.
"""

from .spots import (
    SpotBase,
    SpotCreate,
    SpotUpdate,
    Spot,
    SpotWithRatings,
    SpotStats,
    SpotShare,
)
from .ratings import UserRatingBase, UserRatingCreate, UserRating
from .photos import SpotPhoto
from .notifications import (
    SpotNotificationBase,
    SpotNotificationCreate,
    SpotNotification,
    NotificationListResponse,
)
from .operations import (
    ImportStatus,
    ImportRequest,
    SyncStatus,
    DiscoveryRequest,
    DiscoveryStatus,
    ResetRequest,
    ResetResult,
    GeocodeResult,
    LocationVerification,
)

__all__ = [
    # spots
    "SpotBase",
    "SpotCreate",
    "SpotUpdate",
    "Spot",
    "SpotWithRatings",
    "SpotStats",
    "SpotShare",
    # ratings/photos
    "UserRatingBase",
    "UserRatingCreate",
    "UserRating",
    "SpotPhoto",
    # notifications
    "SpotNotificationBase",
    "SpotNotificationCreate",
    "SpotNotification",
    "NotificationListResponse",
    # operations
    "ImportStatus",
    "ImportRequest",
    "SyncStatus",
    "DiscoveryRequest",
    "DiscoveryStatus",
    "ResetRequest",
    "ResetResult",
    "GeocodeResult",
    "LocationVerification",
]
