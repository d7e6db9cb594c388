"""
CRUD operations for ORM models.

Thin facade over the per-domain repositories for spots, user ratings,
photos and notifications.
"""
import uuid
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from . import schemas
from .repositories import spots as repo_spots
from .repositories import ratings as repo_ratings
from .repositories import photos as repo_photos
from .repositories import notifications as repo_notifications


# CRUD for Spot (facade delegates to repository)
def create_spot(
    db: Session,
    spot: schemas.SpotCreate,
    *,
    last_modified: Optional[datetime] = None,
    cloud_record_id: Optional[str] = None,
    commit: bool = True,
):
    return repo_spots.create_spot(
        db, spot, last_modified=last_modified, cloud_record_id=cloud_record_id, commit=commit
    )


def get_spot(db: Session, spot_id: uuid.UUID):
    return repo_spots.get_spot(db, spot_id)


def get_spots(db: Session, skip: int = 0, limit: int = 100):
    return repo_spots.get_spots(db, skip, limit)


def get_all_spots(db: Session):
    return repo_spots.get_all_spots(db)


def count_spots(db: Session) -> int:
    return repo_spots.count_spots(db)


def get_spot_by_name_and_address(db: Session, name: str, address: str):
    return repo_spots.get_spot_by_name_and_address(db, name, address)


def get_spot_by_cloud_record_id(db: Session, cloud_record_id: str):
    return repo_spots.get_spot_by_cloud_record_id(db, cloud_record_id)


def update_spot(db: Session, spot_id: uuid.UUID, spot: schemas.SpotUpdate):
    return repo_spots.update_spot(db, spot_id, spot)


def delete_spot(db: Session, spot_id: uuid.UUID) -> bool:
    return repo_spots.delete_spot(db, spot_id)


def delete_spots(db: Session, spot_ids: Iterable[uuid.UUID]) -> int:
    return repo_spots.delete_spots(db, spot_ids)


def delete_all_spots(db: Session) -> int:
    return repo_spots.delete_all_spots(db)


# CRUD for UserRating
def create_user_rating(db: Session, spot, rating: schemas.UserRatingCreate):
    return repo_ratings.create_user_rating(db, spot, rating)


def get_user_ratings_for_spot(db: Session, spot_id: uuid.UUID):
    return repo_ratings.get_user_ratings_for_spot(db, spot_id)


def get_user_rating(db: Session, rating_id: uuid.UUID):
    return repo_ratings.get_user_rating(db, rating_id)


def delete_user_rating(db: Session, rating_id: uuid.UUID):
    return repo_ratings.delete_user_rating(db, rating_id)


# CRUD for SpotPhoto
def create_spot_photo(db: Session, spot_id: uuid.UUID, image_data: bytes, **kwargs):
    return repo_photos.create_spot_photo(db, spot_id, image_data, **kwargs)


def get_spot_photo(db: Session, photo_id: uuid.UUID):
    return repo_photos.get_spot_photo(db, photo_id)


def get_photos_for_spot(db: Session, spot_id: uuid.UUID):
    return repo_photos.get_photos_for_spot(db, spot_id)


def delete_spot_photo(db: Session, photo_id: uuid.UUID) -> bool:
    return repo_photos.delete_spot_photo(db, photo_id)


# CRUD for SpotNotification
def create_notification(db: Session, notification: schemas.SpotNotificationCreate):
    return repo_notifications.create_notification(db, notification)


def get_notifications(db: Session, skip: int = 0, limit: int = 50, **filters):
    return repo_notifications.get_notifications(db, skip, limit, **filters)


def count_notifications(db: Session, *, unread_only: bool = False) -> int:
    return repo_notifications.count_notifications(db, unread_only=unread_only)


def mark_notification_read(db: Session, notification_id: uuid.UUID):
    return repo_notifications.mark_notification_read(db, notification_id)
