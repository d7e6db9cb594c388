"""
Spots API endpoints.

CRUD, search, statistics, sharing and location verification for spots.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from workhaven.db import crud, schemas
from workhaven.db.database import get_db
from workhaven.api.deps import get_geocoder
from workhaven.services.geocoding_service import GeocodingService
from workhaven.services.notification_service import NotificationService
from workhaven.services import search_service
from workhaven.utils.ratings import ALL_DESCRIPTIONS
from workhaven.utils.sharing import share_text

router = APIRouter(prefix="/spots", tags=["spots"])


def _get_spot_or_404(db: Session, spot_id: uuid.UUID):
    spot = crud.get_spot(db, spot_id)
    if spot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spot not found")
    return spot


@router.post("/", response_model=schemas.SpotWithRatings, status_code=status.HTTP_201_CREATED)
def create_spot_endpoint(spot: schemas.SpotCreate, db: Session = Depends(get_db)):
    created = crud.create_spot(db, spot)
    NotificationService(db).notify_spot_added(created)
    db.commit()
    db.refresh(created)
    return search_service.serialize_spot(created)


@router.get("/", response_model=List[schemas.SpotWithRatings])
def list_spots_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return [search_service.serialize_spot(s) for s in crud.get_spots(db, skip=skip, limit=limit)]


@router.get("/search/", response_model=List[schemas.SpotWithRatings])
def search_spots_endpoint(
    q: str = "",
    city: Optional[str] = None,
    min_wifi: Optional[int] = Query(None, ge=1, le=5),
    noise: Optional[str] = None,
    outlets_only: bool = False,
    min_overall: Optional[float] = Query(None, ge=0.0, le=5.0),
    rating_description: Optional[str] = None,
    latitude: Optional[float] = Query(None, ge=-90.0, le=90.0),
    longitude: Optional[float] = Query(None, ge=-180.0, le=180.0),
    radius_meters: Optional[float] = Query(None, gt=0),
    sort_by_rating_only: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """
    Search spots by text and amenities.

    - **q**: matches name, address or tips (case-insensitive)
    - **latitude/longitude**: origin for distance sorting and `radius_meters`
    - **sort_by_rating_only**: ignore distance and order by overall rating
    """
    if rating_description and rating_description not in ALL_DESCRIPTIONS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"rating_description must be one of: {', '.join(ALL_DESCRIPTIONS)}",
        )
    criteria = search_service.SpotSearchCriteria(
        query=q,
        city=city,
        min_wifi=min_wifi,
        noise=noise,
        outlets_only=outlets_only,
        min_overall=min_overall,
        rating_description=rating_description,
        origin_latitude=latitude,
        origin_longitude=longitude,
        radius_meters=radius_meters,
        sort_by_rating_only=sort_by_rating_only,
        limit=limit,
    )
    hits = search_service.search_spots(db, criteria)
    return [search_service.serialize_spot(h.spot, h.distance_meters) for h in hits]


@router.get("/stats", response_model=schemas.SpotStats)
def spot_stats_endpoint(db: Session = Depends(get_db)):
    return search_service.spot_stats(db)


@router.get("/top-rated", response_model=List[schemas.SpotWithRatings])
def top_rated_endpoint(db: Session = Depends(get_db)):
    return [search_service.serialize_spot(s) for s in search_service.top_rated_spots(db)]


@router.post("/bulk-delete")
def bulk_delete_endpoint(spot_ids: List[uuid.UUID] = Body(..., embed=True), db: Session = Depends(get_db)):
    return {"deleted": crud.delete_spots(db, spot_ids)}


@router.get("/{spot_id}", response_model=schemas.SpotWithRatings)
def get_spot_endpoint(spot_id: uuid.UUID, db: Session = Depends(get_db)):
    return search_service.serialize_spot(_get_spot_or_404(db, spot_id))


@router.patch("/{spot_id}", response_model=schemas.SpotWithRatings)
def update_spot_endpoint(spot_id: uuid.UUID, spot: schemas.SpotUpdate, db: Session = Depends(get_db)):
    updated = crud.update_spot(db, spot_id, spot)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spot not found")
    return search_service.serialize_spot(updated)


@router.delete("/{spot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_spot_endpoint(spot_id: uuid.UUID, db: Session = Depends(get_db)):
    if not crud.delete_spot(db, spot_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spot not found")


@router.get("/{spot_id}/share", response_model=schemas.SpotShare)
def share_spot_endpoint(spot_id: uuid.UUID, db: Session = Depends(get_db)):
    spot = _get_spot_or_404(db, spot_id)
    return schemas.SpotShare(spot_id=spot.id, text=share_text(spot))


@router.post("/{spot_id}/verify-location", response_model=schemas.LocationVerification)
def verify_location_endpoint(
    spot_id: uuid.UUID,
    db: Session = Depends(get_db),
    geocoder: GeocodingService = Depends(get_geocoder),
):
    spot = _get_spot_or_404(db, spot_id)
    updated = geocoder.verify_spot_location(db, spot)
    return schemas.LocationVerification(updated=updated, latitude=spot.latitude, longitude=spot.longitude)
