import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from workhaven.utils.ratings import NoiseRating


class UserRatingBase(BaseModel):
    wifi_rating: int = Field(ge=1, le=5)
    noise_rating: NoiseRating
    outlets: bool = False
    tip: Optional[str] = None


class UserRatingCreate(UserRatingBase):
    pass


class UserRating(UserRatingBase):
    id: uuid.UUID
    spot_id: uuid.UUID
    timestamp: datetime
    model_config = ConfigDict(from_attributes=True)
