"""
Shared API dependencies: service singletons and feature-flag guards.

Routes take services through these functions so tests can swap them with
``app.dependency_overrides``.
"""
from fastapi import HTTPException, status

from workhaven.services.cloud_sync import CloudSyncManager, get_cloud_sync_manager
from workhaven.services.discovery_service import SpotDiscoveryService, get_discovery_service
from workhaven.services.geocoding_service import GeocodingService, get_geocoding_service
from workhaven.services.import_service import DataImporter, get_data_importer
from workhaven.utils import feature_flags


def get_importer() -> DataImporter:
    return get_data_importer()


def get_geocoder() -> GeocodingService:
    return get_geocoding_service()


def get_sync_manager() -> CloudSyncManager:
    return get_cloud_sync_manager()


def get_discovery() -> SpotDiscoveryService:
    return get_discovery_service()


def require_discovery_enabled() -> None:
    if not feature_flags.discovery_enabled():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spot discovery is disabled")


def require_notifications_enabled() -> None:
    if not feature_flags.notifications_enabled():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notifications are disabled")
