import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class SpotPhoto(BaseModel):
    id: uuid.UUID
    spot_id: uuid.UUID
    content_type: str
    caption: Optional[str] = None
    size_bytes: int
    timestamp: datetime
    model_config = ConfigDict(from_attributes=True)
