"""
Spot discovery endpoints.

Every route is hidden behind the discovery feature flag.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workhaven.db import schemas
from workhaven.db.database import get_db
from workhaven.api.deps import get_discovery, require_discovery_enabled
from workhaven.services.discovery_service import SpotDiscoveryService
from workhaven.services.search_service import serialize_spot

router = APIRouter(
    prefix="/discovery",
    tags=["discovery"],
    dependencies=[Depends(require_discovery_enabled)],
)


@router.get("/status", response_model=schemas.DiscoveryStatus)
def discovery_status_endpoint(service: SpotDiscoveryService = Depends(get_discovery)):
    return service.status()


@router.post("/spots", response_model=List[schemas.SpotWithRatings])
def discover_spots_endpoint(
    request: schemas.DiscoveryRequest,
    db: Session = Depends(get_db),
    service: SpotDiscoveryService = Depends(get_discovery),
):
    spots = service.discover_spots(db, request.latitude, request.longitude, request.radius_meters)
    return [serialize_spot(s) for s in spots]


@router.post("/refresh-details")
def refresh_details_endpoint(db: Session = Depends(get_db), service: SpotDiscoveryService = Depends(get_discovery)):
    return {"updated": service.refresh_business_details(db)}


@router.delete("/error", response_model=schemas.DiscoveryStatus)
def clear_discovery_error_endpoint(service: SpotDiscoveryService = Depends(get_discovery)):
    service.clear_error()
    return service.status()
