import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class SpotNotification(Base):
    __tablename__ = 'spot_notifications'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Kept after the spot is removed so the history stays readable
    spot_id = Column(UUID(as_uuid=True), ForeignKey('spots.id', ondelete='SET NULL'), nullable=True)
    event_type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_spot_notifications_created_at', 'created_at'),
        Index('idx_spot_notifications_event_type', 'event_type'),
        CheckConstraint("event_type in ('new_spot','hot_spot','nearby')", name='ck_spot_notifications_event_type'),
    )
