"""
User rating repository functions.

Adding or removing a rating bumps the parent spot's ``last_modified`` so the
change wins the next sync merge.
"""
from __future__ import annotations

import uuid
from typing import List

from sqlalchemy.orm import Session

from workhaven.db import models, schemas


def create_user_rating(db: Session, spot: models.Spot, rating: schemas.UserRatingCreate):
    data = rating.model_dump(mode="json")
    db_rating = models.UserRating(spot_id=spot.id, **data)
    db.add(db_rating)
    spot.last_modified = models.now_utc()
    db.commit()
    db.refresh(db_rating)
    return db_rating


def get_user_rating(db: Session, rating_id: uuid.UUID):
    return db.query(models.UserRating).filter(models.UserRating.id == rating_id).first()


def get_user_ratings_for_spot(db: Session, spot_id: uuid.UUID) -> List[models.UserRating]:
    """Ratings for a spot, newest first."""
    return (
        db.query(models.UserRating)
        .filter(models.UserRating.spot_id == spot_id)
        .order_by(models.UserRating.timestamp.desc())
        .all()
    )


def delete_user_rating(db: Session, rating_id: uuid.UUID):
    """Delete a rating and bump its spot; returns the deleted rating or None."""
    if rating_id is None:
        return None
    try:
        db_rating = db.query(models.UserRating).filter(models.UserRating.id == rating_id).first()
        if db_rating:
            spot = db_rating.spot
            db.delete(db_rating)
            if spot is not None:
                spot.last_modified = models.now_utc()
            db.commit()
        return db_rating
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete user rating {rating_id}: {str(e)}")
