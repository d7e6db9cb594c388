"""Spot notification repository functions."""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from workhaven.db import models, schemas


def create_notification(db: Session, notification: schemas.SpotNotificationCreate, *, commit: bool = True):
    db_notification = models.SpotNotification(**notification.model_dump())
    db.add(db_notification)
    if commit:
        db.commit()
        db.refresh(db_notification)
    return db_notification


def get_notifications(
    db: Session,
    skip: int = 0,
    limit: int = 50,
    *,
    unread_only: bool = False,
    event_type: Optional[str] = None,
) -> List[models.SpotNotification]:
    q = db.query(models.SpotNotification)
    if unread_only:
        q = q.filter(models.SpotNotification.is_read.is_(False))
    if event_type:
        q = q.filter(models.SpotNotification.event_type == event_type)
    return q.order_by(models.SpotNotification.created_at.desc()).offset(skip).limit(limit).all()


def count_notifications(db: Session, *, unread_only: bool = False) -> int:
    q = db.query(func.count(models.SpotNotification.id))
    if unread_only:
        q = q.filter(models.SpotNotification.is_read.is_(False))
    return q.scalar() or 0


def mark_notification_read(db: Session, notification_id: uuid.UUID):
    db_notification = (
        db.query(models.SpotNotification)
        .filter(models.SpotNotification.id == notification_id)
        .first()
    )
    if db_notification and not db_notification.is_read:
        db_notification.is_read = True
        db.commit()
        db.refresh(db_notification)
    return db_notification


def delete_all_notifications(db: Session) -> int:
    deleted = db.query(models.SpotNotification).delete(synchronize_session=False)
    db.commit()
    return deleted
