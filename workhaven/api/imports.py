"""
Seed import endpoints.

Imports run inside the request; a second request while one is running
returns the current status instead of starting another import.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from workhaven.db import schemas
from workhaven.db.database import get_db
from workhaven.api.deps import get_importer
from workhaven.services.import_service import AVAILABLE_CITIES, DataImporter

router = APIRouter(prefix="/import", tags=["import"])


@router.get("/status", response_model=schemas.ImportStatus)
def import_status_endpoint(importer: DataImporter = Depends(get_importer)):
    return importer.current_status()


@router.post("/city", response_model=schemas.ImportStatus)
def import_city_endpoint(
    request: schemas.ImportRequest,
    db: Session = Depends(get_db),
    importer: DataImporter = Depends(get_importer),
):
    city = request.city.strip()
    if not city:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="city is required")
    return importer.import_city(city, db=db)


@router.post("/all", response_model=List[schemas.ImportStatus])
def import_all_endpoint(db: Session = Depends(get_db), importer: DataImporter = Depends(get_importer)):
    return importer.import_all_cities(db=db)


@router.get("/cities", response_model=List[str])
def available_cities_endpoint():
    return list(AVAILABLE_CITIES)


@router.post("/seed")
def seed_endpoint(db: Session = Depends(get_db), importer: DataImporter = Depends(get_importer)):
    return {"inserted": importer.seed_if_empty(db=db)}


@router.post("/preview")
def seed_preview_endpoint(db: Session = Depends(get_db), importer: DataImporter = Depends(get_importer)):
    return {"inserted": importer.seed_preview_spots(db=db)}


@router.post("/cleanup-duplicates")
def cleanup_duplicates_endpoint(db: Session = Depends(get_db), importer: DataImporter = Depends(get_importer)):
    return {"removed": importer.cleanup_duplicates(db=db)}


@router.delete("/data")
def clear_data_endpoint(db: Session = Depends(get_db), importer: DataImporter = Depends(get_importer)):
    return {"deleted": importer.clear_all_data(db=db)}
