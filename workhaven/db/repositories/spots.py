"""
Spot repository functions.

Implements create/read/update/delete for spots plus the lookups used by the
importer and the cloud sync merge (by name+address, by cloud record id).
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from workhaven.db import models, schemas


def _column_values(payload, *, exclude_unset: bool = False) -> dict:
    # mode="json" turns NoiseRating members into their plain string values
    return payload.model_dump(mode="json", exclude_unset=exclude_unset)


def create_spot(
    db: Session,
    spot: schemas.SpotCreate,
    *,
    last_modified: Optional[datetime] = None,
    cloud_record_id: Optional[str] = None,
    commit: bool = True,
):
    db_spot = models.Spot(**_column_values(spot))
    db_spot.last_modified = last_modified or models.now_utc()
    db_spot.cloud_record_id = cloud_record_id
    db.add(db_spot)
    if commit:
        db.commit()
        db.refresh(db_spot)
    else:
        db.flush()
    return db_spot


def get_spot(db: Session, spot_id: uuid.UUID):
    return (
        db.query(models.Spot)
        .options(selectinload(models.Spot.user_ratings))
        .filter(models.Spot.id == spot_id)
        .first()
    )


def get_spots(db: Session, skip: int = 0, limit: int = 100):
    """List spots sorted by name."""
    return (
        db.query(models.Spot)
        .options(selectinload(models.Spot.user_ratings))
        .order_by(models.Spot.name.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_all_spots(db: Session) -> List[models.Spot]:
    return (
        db.query(models.Spot)
        .options(selectinload(models.Spot.user_ratings))
        .order_by(models.Spot.name.asc())
        .all()
    )


def count_spots(db: Session) -> int:
    return db.query(func.count(models.Spot.id)).scalar() or 0


def get_spot_by_name_and_address(db: Session, name: str, address: str):
    return (
        db.query(models.Spot)
        .filter(models.Spot.name == name, models.Spot.address == address)
        .first()
    )


def get_spot_by_cloud_record_id(db: Session, cloud_record_id: str):
    return db.query(models.Spot).filter(models.Spot.cloud_record_id == cloud_record_id).first()


def address_contains(db: Session, text: str, limit: Optional[int] = None):
    """Spots whose address contains ``text`` (case-insensitive)."""
    q = db.query(models.Spot).filter(func.lower(models.Spot.address).contains(text.lower()))
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def get_spots_newest_first(db: Session) -> List[models.Spot]:
    return db.query(models.Spot).order_by(models.Spot.last_modified.desc()).all()


def update_spot(db: Session, spot_id: uuid.UUID, spot: schemas.SpotUpdate):
    db_spot = db.query(models.Spot).filter(models.Spot.id == spot_id).first()
    if db_spot:
        for key, value in _column_values(spot, exclude_unset=True).items():
            setattr(db_spot, key, value)
        db_spot.last_modified = models.now_utc()
        db.commit()
        db.refresh(db_spot)
    return db_spot


def touch_spot(db: Session, db_spot: models.Spot, *, commit: bool = True):
    db_spot.last_modified = models.now_utc()
    if commit:
        db.commit()
        db.refresh(db_spot)
    return db_spot


def _detach_notifications(db: Session, spot_ids: Iterable[uuid.UUID]) -> None:
    ids = list(spot_ids)
    if not ids:
        return
    db.query(models.SpotNotification).filter(
        models.SpotNotification.spot_id.in_(ids)
    ).update({models.SpotNotification.spot_id: None}, synchronize_session=False)


def delete_spot(db: Session, spot_id: uuid.UUID) -> bool:
    """Delete a spot and its ratings/photos with proper error handling."""
    if spot_id is None:
        return False
    try:
        db_spot = db.query(models.Spot).filter(models.Spot.id == spot_id).first()
        if not db_spot:
            return False
        _detach_notifications(db, [spot_id])
        # ORM cascade removes user ratings and photos
        db.delete(db_spot)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete spot {spot_id}: {str(e)}")


def delete_spots(db: Session, spot_ids: Iterable[uuid.UUID], *, commit: bool = True) -> int:
    ids = [sid for sid in spot_ids if sid is not None]
    if not ids:
        return 0
    try:
        spots = db.query(models.Spot).filter(models.Spot.id.in_(ids)).all()
        _detach_notifications(db, [s.id for s in spots])
        for db_spot in spots:
            db.delete(db_spot)
        if commit:
            db.commit()
        return len(spots)
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete spots: {str(e)}")


def delete_all_spots(db: Session) -> int:
    """Batch delete every spot together with ratings and photos."""
    try:
        db.query(models.SpotNotification).update(
            {models.SpotNotification.spot_id: None}, synchronize_session=False
        )
        db.query(models.UserRating).delete(synchronize_session=False)
        db.query(models.SpotPhoto).delete(synchronize_session=False)
        deleted = db.query(models.Spot).delete(synchronize_session=False)
        db.commit()
        db.expire_all()
        return deleted
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to clear spots: {str(e)}")
