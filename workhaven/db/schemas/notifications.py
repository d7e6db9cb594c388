import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class SpotNotificationBase(BaseModel):
    event_type: str
    title: str
    message: str
    spot_id: Optional[uuid.UUID] = None


class SpotNotificationCreate(SpotNotificationBase):
    pass


class SpotNotification(SpotNotificationBase):
    id: uuid.UUID
    is_read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[SpotNotification]
    total: int
    unread_count: int
