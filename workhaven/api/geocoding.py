"""Address lookup endpoint backed by the configured geocoding provider."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from workhaven.db import schemas
from workhaven.api.deps import get_geocoder
from workhaven.services.geocoding_service import GeocodingError, GeocodingService

router = APIRouter(prefix="/geocode", tags=["geocoding"])


@router.get("/", response_model=List[schemas.GeocodeResult])
def geocode_endpoint(address: str, geocoder: GeocodingService = Depends(get_geocoder)):
    try:
        placemarks = geocoder.geocode_address(address)
    except GeocodingError as e:
        if e.code == GeocodingError.INVALID_ADDRESS:
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        elif e.code == GeocodingError.RATE_LIMIT_EXCEEDED:
            code = status.HTTP_429_TOO_MANY_REQUESTS
        else:
            code = status.HTTP_502_BAD_GATEWAY
        raise HTTPException(status_code=code, detail=str(e))
    if not placemarks:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(GeocodingError(GeocodingError.NO_RESULTS)),
        )
    return [
        schemas.GeocodeResult(
            latitude=p.latitude,
            longitude=p.longitude,
            formatted_address=p.formatted_address,
        )
        for p in placemarks
    ]
