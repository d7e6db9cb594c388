"""
Domain-split SQLAlchemy models with a compatibility aggregator.

Exposes `Base`, the timestamp helpers, and all ORM classes from one place so
callers can write ``from workhaven.db import models``.
"""

from .base import Base, now_utc, as_utc  # re-export

from .spots import Spot, UserRating, SpotPhoto
from .notifications import SpotNotification

__all__ = [
    # base
    "Base",
    "now_utc",
    "as_utc",
    # spots
    "Spot",
    "UserRating",
    "SpotPhoto",
    # notifications
    "SpotNotification",
]
