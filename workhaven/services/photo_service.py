"""Spot photo uploads stored alongside the spot."""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from workhaven.db import models
from workhaven.db.repositories import photos as repo_photos
from workhaven.db.repositories import spots as repo_spots

logger = logging.getLogger(__name__)

MAX_PHOTO_BYTES = 1024 * 1024
ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/heic", "image/webp"})


class PhotoError(Exception):
    INVALID_IMAGE = "invalid_image"
    TOO_LARGE = "too_large"
    UPLOAD_FAILED = "upload_failed"
    SPOT_NOT_FOUND = "spot_not_found"

    _MESSAGES = {
        INVALID_IMAGE: "Invalid image data",
        TOO_LARGE: f"Image exceeds the {MAX_PHOTO_BYTES // 1024} KB limit",
        UPLOAD_FAILED: "Failed to upload photo",
        SPOT_NOT_FOUND: "Spot not found",
    }

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(self._MESSAGES.get(code, code))


class PhotoService:
    def __init__(self, db: Session, *, max_bytes: int = MAX_PHOTO_BYTES) -> None:
        self.db = db
        self.max_bytes = max_bytes

    def upload_photo(
        self,
        spot_id: uuid.UUID,
        image_data: bytes,
        *,
        content_type: Optional[str] = None,
        caption: Optional[str] = None,
    ) -> models.SpotPhoto:
        spot = repo_spots.get_spot(self.db, spot_id)
        if spot is None:
            raise PhotoError(PhotoError.SPOT_NOT_FOUND)
        if not image_data:
            raise PhotoError(PhotoError.INVALID_IMAGE)
        content_type = (content_type or "image/jpeg").lower()
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise PhotoError(PhotoError.INVALID_IMAGE)
        if len(image_data) > self.max_bytes:
            raise PhotoError(PhotoError.TOO_LARGE)
        try:
            photo = repo_photos.create_spot_photo(
                self.db, spot.id, image_data, content_type=content_type, caption=caption
            )
        except Exception as exc:
            self.db.rollback()
            logger.error("Photo upload failed for spot %s: %s", spot_id, exc)
            raise PhotoError(PhotoError.UPLOAD_FAILED) from exc
        logger.info("Photo uploaded", extra={"spot_id": str(spot_id), "size_bytes": len(image_data)})
        return photo

    def get_photos(self, spot_id: uuid.UUID) -> List[models.SpotPhoto]:
        return repo_photos.get_photos_for_spot(self.db, spot_id)

    def get_photo(self, photo_id: uuid.UUID) -> Optional[models.SpotPhoto]:
        return repo_photos.get_spot_photo(self.db, photo_id)

    def delete_photo(self, photo_id: uuid.UUID) -> bool:
        return repo_photos.delete_spot_photo(self.db, photo_id)
