"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "auto_import_enabled",
    "cloud_sync_enabled",
    "discovery_enabled",
    "notifications_enabled",
]


class FeatureFlagValues(TypedDict):
    auto_import_enabled: bool
    cloud_sync_enabled: bool
    discovery_enabled: bool
    notifications_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "auto_import_enabled": FeatureFlagDefinition("WORKHAVEN_AUTO_IMPORT", False),
    "cloud_sync_enabled": FeatureFlagDefinition("WORKHAVEN_CLOUD_SYNC", True),
    "discovery_enabled": FeatureFlagDefinition("WORKHAVEN_DISCOVERY", True),
    "notifications_enabled": FeatureFlagDefinition("WORKHAVEN_NOTIFICATIONS", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def auto_import_enabled() -> bool:
    """Seed and sync the store in the background when the app starts."""
    return is_feature_enabled("auto_import_enabled")


def cloud_sync_enabled() -> bool:
    """Toggle the cloud record sync surface."""
    return is_feature_enabled("cloud_sync_enabled")


def discovery_enabled() -> bool:
    """Toggle location-based spot discovery."""
    return is_feature_enabled("discovery_enabled")


def notifications_enabled() -> bool:
    """Master switch for spot notifications."""
    return is_feature_enabled("notifications_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
