"""Notification list and housekeeping endpoints."""
from typing import Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from workhaven.db import schemas
from workhaven.db.database import get_db
from workhaven.api.deps import require_notifications_enabled
from workhaven.services.notification_service import NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_notifications_enabled)],
)


@router.get("/", response_model=schemas.NotificationListResponse)
def list_notifications_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    db: Session = Depends(get_db),
):
    return NotificationService(db).list_notifications(skip=skip, limit=limit, unread_only=unread_only)


@router.post("/{notification_id}/read", response_model=schemas.SpotNotification)
def mark_read_endpoint(notification_id: uuid.UUID, db: Session = Depends(get_db)):
    notification = NotificationService(db).mark_read(notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.delete("/")
def clear_notifications_endpoint(db: Session = Depends(get_db)):
    return {"deleted": NotificationService(db).clear_all()}
