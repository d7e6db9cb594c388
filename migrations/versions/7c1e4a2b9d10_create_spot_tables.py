"""create spot tables

Revision ID: 7c1e4a2b9d10
Revises:
Create Date: 2026-09-28 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7c1e4a2b9d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'spots',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('wifi_rating', sa.Integer(), nullable=False),
        sa.Column('noise_rating', sa.String(length=10), nullable=False),
        sa.Column('outlets', sa.Boolean(), nullable=False),
        sa.Column('tips', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.String(length=1000), nullable=True),
        sa.Column('business_hours', sa.String(length=255), nullable=True),
        sa.Column('business_image_url', sa.String(length=1000), nullable=True),
        sa.Column('phone_number', sa.String(length=50), nullable=True),
        sa.Column('website_url', sa.String(length=1000), nullable=True),
        sa.Column('cloud_record_id', sa.String(length=255), nullable=True),
        sa.Column('last_modified', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("wifi_rating >= 1 AND wifi_rating <= 5", name='ck_spots_wifi_rating'),
        sa.CheckConstraint("noise_rating in ('Low','Medium','High')", name='ck_spots_noise_rating'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cloud_record_id'),
    )
    op.create_index('idx_spots_name', 'spots', ['name'], unique=False)
    op.create_index('idx_spots_name_address', 'spots', ['name', 'address'], unique=False)
    op.create_index('idx_spots_last_modified', 'spots', ['last_modified'], unique=False)

    op.create_table(
        'user_ratings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('spot_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('spots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('wifi_rating', sa.Integer(), nullable=False),
        sa.Column('noise_rating', sa.String(length=10), nullable=False),
        sa.Column('outlets', sa.Boolean(), nullable=False),
        sa.Column('tip', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("wifi_rating >= 1 AND wifi_rating <= 5", name='ck_user_ratings_wifi_rating'),
        sa.CheckConstraint("noise_rating in ('Low','Medium','High')", name='ck_user_ratings_noise_rating'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_user_ratings_spot_id', 'user_ratings', ['spot_id'], unique=False)

    op.create_table(
        'spot_photos',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('spot_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('spots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_data', sa.LargeBinary(), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=False),
        sa.Column('caption', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_spot_photos_spot_id', 'spot_photos', ['spot_id'], unique=False)

    op.create_table(
        'spot_notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('spot_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('spots.id', ondelete='SET NULL'), nullable=True),
        sa.Column('event_type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("event_type in ('new_spot','hot_spot','nearby')", name='ck_spot_notifications_event_type'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_spot_notifications_created_at', 'spot_notifications', ['created_at'], unique=False)
    op.create_index('idx_spot_notifications_event_type', 'spot_notifications', ['event_type'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_spot_notifications_event_type', table_name='spot_notifications')
    op.drop_index('idx_spot_notifications_created_at', table_name='spot_notifications')
    op.drop_table('spot_notifications')
    op.drop_index('idx_spot_photos_spot_id', table_name='spot_photos')
    op.drop_table('spot_photos')
    op.drop_index('idx_user_ratings_spot_id', table_name='user_ratings')
    op.drop_table('user_ratings')
    op.drop_index('idx_spots_last_modified', table_name='spots')
    op.drop_index('idx_spots_name_address', table_name='spots')
    op.drop_index('idx_spots_name', table_name='spots')
    op.drop_table('spots')
