"""User rating endpoints nested under a spot."""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from workhaven.db import crud, schemas
from workhaven.db.database import get_db

router = APIRouter(prefix="/spots", tags=["ratings"])


@router.post("/{spot_id}/ratings", response_model=schemas.UserRating, status_code=status.HTTP_201_CREATED)
def add_rating_endpoint(spot_id: uuid.UUID, rating: schemas.UserRatingCreate, db: Session = Depends(get_db)):
    spot = crud.get_spot(db, spot_id)
    if spot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spot not found")
    return crud.create_user_rating(db, spot, rating)


@router.get("/{spot_id}/ratings", response_model=List[schemas.UserRating])
def list_ratings_endpoint(spot_id: uuid.UUID, db: Session = Depends(get_db)):
    if crud.get_spot(db, spot_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spot not found")
    return crud.get_user_ratings_for_spot(db, spot_id)


@router.delete("/{spot_id}/ratings/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rating_endpoint(spot_id: uuid.UUID, rating_id: uuid.UUID, db: Session = Depends(get_db)):
    rating = crud.get_user_rating(db, rating_id)
    if rating is None or rating.spot_id != spot_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found")
    crud.delete_user_rating(db, rating_id)
