"""Coordinate helpers shared by geocoding, discovery and search."""
from __future__ import annotations

import math
from typing import Optional

EARTH_RADIUS_METERS = 6_371_008.8

# 20 miles, the default discovery and "nearby" radius
DEFAULT_RADIUS_METERS = 32186.88


def is_valid_latitude(latitude: float) -> bool:
    return -90.0 <= latitude <= 90.0


def is_valid_longitude(longitude: float) -> bool:
    return -180.0 <= longitude <= 180.0


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return is_valid_latitude(latitude) and is_valid_longitude(longitude)


def has_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """True when a spot carries a real location (0,0 means "unknown")."""
    return bool(latitude) and bool(longitude)


def distance_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters (haversine)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def format_distance(meters: float) -> str:
    """Abbreviated, imperial display string ("350 ft", "2.4 mi")."""
    feet = meters * 3.28084
    if feet < 1000:
        return f"{int(round(feet))} ft"
    miles = meters / 1609.344
    if miles < 10:
        return f"{miles:.1f} mi"
    return f"{int(round(miles))} mi"
