import uuid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Spot(Base):
    __tablename__ = 'spots'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=False, default=0.0)
    longitude = Column(Float, nullable=False, default=0.0)
    wifi_rating = Column(Integer, nullable=False, default=3)
    noise_rating = Column(String(10), nullable=False, default='Medium')
    outlets = Column(Boolean, nullable=False, default=False)
    tips = Column(Text, nullable=True)
    photo_url = Column(String(1000), nullable=True)
    # Business details filled in by discovery
    business_hours = Column(String(255), nullable=True)
    business_image_url = Column(String(1000), nullable=True)
    phone_number = Column(String(50), nullable=True)
    website_url = Column(String(1000), nullable=True)
    # Link to the mirrored record in the cloud record store
    cloud_record_id = Column(String(255), nullable=True, unique=True)
    last_modified = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    user_ratings = relationship(
        "UserRating",
        back_populates="spot",
        cascade="all, delete-orphan",
    )
    photos = relationship(
        "SpotPhoto",
        back_populates="spot",
        cascade="all, delete-orphan",
    )

    @property
    def has_photo(self) -> bool:
        return bool(self.photo_url)

    @property
    def wifi_rating_stars(self) -> str:
        rating = int(self.wifi_rating or 0)
        return "★" * rating + "☆" * (5 - rating)

    def is_valid(self) -> bool:
        return bool((self.name or "").strip()) and bool((self.address or "").strip()) and 1 <= (self.wifi_rating or 0) <= 5

    __table_args__ = (
        Index('idx_spots_name', 'name'),
        Index('idx_spots_name_address', 'name', 'address'),
        Index('idx_spots_last_modified', 'last_modified'),
        CheckConstraint("wifi_rating >= 1 AND wifi_rating <= 5", name='ck_spots_wifi_rating'),
        CheckConstraint("noise_rating in ('Low','Medium','High')", name='ck_spots_noise_rating'),
    )


class UserRating(Base):
    __tablename__ = 'user_ratings'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    spot_id = Column(UUID(as_uuid=True), ForeignKey('spots.id', ondelete='CASCADE'), nullable=False)
    wifi_rating = Column(Integer, nullable=False)
    noise_rating = Column(String(10), nullable=False)
    outlets = Column(Boolean, nullable=False, default=False)
    tip = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    spot = relationship("Spot", back_populates="user_ratings")

    __table_args__ = (
        Index('idx_user_ratings_spot_id', 'spot_id'),
        CheckConstraint("wifi_rating >= 1 AND wifi_rating <= 5", name='ck_user_ratings_wifi_rating'),
        CheckConstraint("noise_rating in ('Low','Medium','High')", name='ck_user_ratings_noise_rating'),
    )


class SpotPhoto(Base):
    __tablename__ = 'spot_photos'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    spot_id = Column(UUID(as_uuid=True), ForeignKey('spots.id', ondelete='CASCADE'), nullable=False)
    image_data = Column(LargeBinary, nullable=False)
    content_type = Column(String(100), nullable=False, default='image/jpeg')
    caption = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    spot = relationship("Spot", back_populates="photos")

    @property
    def size_bytes(self) -> int:
        return len(self.image_data or b"")

    __table_args__ = (
        Index('idx_spot_photos_spot_id', 'spot_id'),
    )
