"""Business logic services package with public service helpers."""

from .geocoding_service import (
    GeocodingConfig,
    GeocodingError,
    GeocodingService,
    get_geocoding_service,
    reset_geocoding_service_for_tests,
)
from .import_service import (
    DataImporter,
    DataImportError,
    get_data_importer,
    reset_data_importer_for_tests,
)
from .cloud_sync import (
    CloudSyncConfig,
    CloudSyncError,
    CloudSyncManager,
    get_cloud_sync_manager,
    reset_cloud_sync_manager_for_tests,
)
from .discovery_service import (
    DiscoveryConfig,
    DiscoveryError,
    SpotDiscoveryService,
    get_discovery_service,
    reset_discovery_service_for_tests,
)

__all__ = [
    "GeocodingConfig",
    "GeocodingError",
    "GeocodingService",
    "get_geocoding_service",
    "reset_geocoding_service_for_tests",
    "DataImporter",
    "DataImportError",
    "get_data_importer",
    "reset_data_importer_for_tests",
    "CloudSyncConfig",
    "CloudSyncError",
    "CloudSyncManager",
    "get_cloud_sync_manager",
    "reset_cloud_sync_manager_for_tests",
    "DiscoveryConfig",
    "DiscoveryError",
    "SpotDiscoveryService",
    "get_discovery_service",
    "reset_discovery_service_for_tests",
]
