import uuid
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from workhaven.utils.ratings import NoiseRating


def _require_text(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class SpotBase(BaseModel):
    name: str
    address: str
    latitude: float = Field(default=0.0, ge=-90.0, le=90.0)
    longitude: float = Field(default=0.0, ge=-180.0, le=180.0)
    wifi_rating: int = Field(default=3, ge=1, le=5)
    noise_rating: NoiseRating = NoiseRating.MEDIUM
    outlets: bool = False
    tips: Optional[str] = None
    photo_url: Optional[str] = None
    business_hours: Optional[str] = None
    business_image_url: Optional[str] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None

    @field_validator("name", "address")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _require_text(value)


class SpotCreate(SpotBase):
    pass


class SpotUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    wifi_rating: Optional[int] = Field(default=None, ge=1, le=5)
    noise_rating: Optional[NoiseRating] = None
    outlets: Optional[bool] = None
    tips: Optional[str] = None
    photo_url: Optional[str] = None
    business_hours: Optional[str] = None
    business_image_url: Optional[str] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None

    @field_validator("name", "address")
    @classmethod
    def _not_blank(cls, value):
        if value is None:
            return value
        return _require_text(value)


class Spot(SpotBase):
    id: uuid.UUID
    cloud_record_id: Optional[str] = None
    last_modified: datetime
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class SpotWithRatings(Spot):
    average_wifi_rating: float
    average_noise_rating: NoiseRating
    average_outlets: bool
    total_user_ratings: int
    overall_rating: float
    rating_description: str
    distance_meters: Optional[float] = None
    formatted_distance: Optional[str] = None


class SpotStats(BaseModel):
    total_spots: int
    average_overall_rating: float
    rating_distribution: Dict[str, int]
    top_rated_count: int
    spots_with_user_ratings: int


class SpotShare(BaseModel):
    spot_id: uuid.UUID
    text: str
