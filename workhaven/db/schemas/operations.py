"""Status payloads for the long-running flows (import, sync, discovery, reset)."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class ImportStatus(BaseModel):
    is_importing: bool = False
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    status: str = ""
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    geocoded: int = 0
    available_cities: List[str] = []


class ImportRequest(BaseModel):
    city: str


class SyncStatus(BaseModel):
    provider: str
    is_enabled: bool
    is_syncing: bool
    last_sync_at: Optional[datetime] = None
    sync_error: Optional[str] = None
    consecutive_errors: int = 0
    uploaded: int = 0
    created: int = 0
    updated: int = 0


class DiscoveryRequest(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    radius_meters: float = Field(default=32186.88, gt=0)


class DiscoveryStatus(BaseModel):
    is_discovering: bool
    api_key_status: str
    summary: str
    error: Optional[str] = None


class ResetRequest(BaseModel):
    kind: str = "complete"


class ResetResult(BaseModel):
    kind: str
    status: str
    local_spots_deleted: int = 0
    remote_records_deleted: int = 0
    error: Optional[str] = None


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    formatted_address: str


class LocationVerification(BaseModel):
    updated: bool
    latitude: float
    longitude: float
