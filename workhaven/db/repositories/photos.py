"""Spot photo repository functions."""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from workhaven.db import models


def create_spot_photo(
    db: Session,
    spot_id: uuid.UUID,
    image_data: bytes,
    *,
    content_type: str = "image/jpeg",
    caption: Optional[str] = None,
):
    db_photo = models.SpotPhoto(
        spot_id=spot_id,
        image_data=image_data,
        content_type=content_type,
        caption=caption,
    )
    db.add(db_photo)
    db.commit()
    db.refresh(db_photo)
    return db_photo


def get_spot_photo(db: Session, photo_id: uuid.UUID):
    return db.query(models.SpotPhoto).filter(models.SpotPhoto.id == photo_id).first()


def get_photos_for_spot(db: Session, spot_id: uuid.UUID) -> List[models.SpotPhoto]:
    return (
        db.query(models.SpotPhoto)
        .filter(models.SpotPhoto.spot_id == spot_id)
        .order_by(models.SpotPhoto.timestamp.desc())
        .all()
    )


def delete_spot_photo(db: Session, photo_id: uuid.UUID) -> bool:
    try:
        db_photo = db.query(models.SpotPhoto).filter(models.SpotPhoto.id == photo_id).first()
        if not db_photo:
            return False
        db.delete(db_photo)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete photo {photo_id}: {str(e)}")
