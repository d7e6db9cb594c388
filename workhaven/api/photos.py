"""
Spot photo endpoints.

Uploads take the raw image bytes as the request body with the image
``Content-Type``; the optional caption travels as a query parameter.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from workhaven.db import schemas
from workhaven.db.database import get_db
from workhaven.services.photo_service import PhotoError, PhotoService

router = APIRouter(prefix="/spots", tags=["photos"])

_ERROR_STATUS = {
    PhotoError.SPOT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    PhotoError.INVALID_IMAGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PhotoError.TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    PhotoError.UPLOAD_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _photo_for_spot_or_404(service: PhotoService, spot_id: uuid.UUID, photo_id: uuid.UUID):
    photo = service.get_photo(photo_id)
    if photo is None or photo.spot_id != spot_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return photo


@router.post("/{spot_id}/photos", response_model=schemas.SpotPhoto, status_code=status.HTTP_201_CREATED)
async def upload_photo_endpoint(
    spot_id: uuid.UUID,
    request: Request,
    caption: Optional[str] = None,
    db: Session = Depends(get_db),
):
    body = await request.body()
    content_type = (request.headers.get("content-type") or "").split(";")[0].strip() or None
    try:
        return PhotoService(db).upload_photo(spot_id, body, content_type=content_type, caption=caption)
    except PhotoError as e:
        raise HTTPException(status_code=_ERROR_STATUS.get(e.code, 400), detail=str(e))


@router.get("/{spot_id}/photos", response_model=List[schemas.SpotPhoto])
def list_photos_endpoint(spot_id: uuid.UUID, db: Session = Depends(get_db)):
    return PhotoService(db).get_photos(spot_id)


@router.get("/{spot_id}/photos/{photo_id}")
def get_photo_endpoint(spot_id: uuid.UUID, photo_id: uuid.UUID, db: Session = Depends(get_db)):
    photo = _photo_for_spot_or_404(PhotoService(db), spot_id, photo_id)
    return Response(content=photo.image_data, media_type=photo.content_type)


@router.delete("/{spot_id}/photos/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_photo_endpoint(spot_id: uuid.UUID, photo_id: uuid.UUID, db: Session = Depends(get_db)):
    service = PhotoService(db)
    _photo_for_spot_or_404(service, spot_id, photo_id)
    service.delete_photo(photo_id)
