"""Address geocoding with provider selection and client-side rate limiting."""
from __future__ import annotations

import hashlib
import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import requests
from sqlalchemy.orm import Session

from workhaven.db import models
from workhaven.utils.geo import distance_between, has_coordinates, is_valid_coordinate

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = (3, 20)

# Only move a spot that already has coordinates when the lookup disagrees by more than this
LOCATION_UPDATE_THRESHOLD_METERS = 100.0
BATCH_SPOT_DELAY_SECONDS = 0.5


class GeocodingError(Exception):
    INVALID_ADDRESS = "invalid_address"
    GEOCODING_FAILED = "geocoding_failed"
    NO_RESULTS = "no_results"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"

    _MESSAGES = {
        INVALID_ADDRESS: "Invalid address provided",
        NO_RESULTS: "No results found for the provided address",
        RATE_LIMIT_EXCEEDED: "Rate limit exceeded. Please try again later",
    }

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        if code == self.GEOCODING_FAILED:
            message = f"Geocoding failed: {detail or 'unknown error'}"
        else:
            message = self._MESSAGES.get(code, detail or code)
        super().__init__(message)


@dataclass
class Placemark:
    latitude: float
    longitude: float
    name: Optional[str] = None
    thoroughfare: Optional[str] = None
    locality: Optional[str] = None
    administrative_area: Optional[str] = None
    country: Optional[str] = None

    @property
    def formatted_address(self) -> str:
        parts = [self.name, self.thoroughfare, self.locality, self.administrative_area, self.country]
        return ", ".join(p for p in parts if p)


@dataclass
class GeocodingConfig:
    provider: str
    base_url: Optional[str] = None
    user_agent: str = "workhaven/0.1"
    min_interval: float = 1.0

    @classmethod
    def from_env(cls) -> "GeocodingConfig":
        provider = (os.getenv("GEOCODING_PROVIDER") or "nominatim").strip().lower()
        raw_interval = os.getenv("GEOCODING_MIN_INTERVAL_SECONDS")
        try:
            min_interval = float(raw_interval) if raw_interval else 1.0
        except ValueError:
            logger.warning("Invalid GEOCODING_MIN_INTERVAL_SECONDS '%s'; using 1.0", raw_interval)
            min_interval = 1.0

        if provider in {"nominatim", "osm"}:
            return cls(
                provider="nominatim",
                base_url=os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org"),
                user_agent=os.getenv("GEOCODING_USER_AGENT", "workhaven/0.1"),
                min_interval=min_interval,
            )
        if provider == "mock":
            return cls(provider=provider, min_interval=0.0)
        if provider in {"disabled", "none", "off", ""}:
            return cls(provider="disabled")
        logger.warning("Unknown GEOCODING_PROVIDER '%s'; geocoding disabled.", provider)
        return cls(provider="disabled")

    @property
    def is_enabled(self) -> bool:
        return self.provider != "disabled"


class BaseGeocodingProvider:
    def geocode(self, address: str) -> List[Placemark]:
        raise NotImplementedError


class MockGeocodingProvider(BaseGeocodingProvider):
    """Deterministic placemarks derived from the address text."""

    def geocode(self, address: str) -> List[Placemark]:
        digest = hashlib.sha256(address.strip().lower().encode("utf-8")).digest()
        latitude = (digest[0] / 255.0) * 120.0 - 60.0
        longitude = (digest[1] / 255.0) * 360.0 - 180.0
        name = address.split(",")[0].strip() or None
        return [Placemark(latitude=round(latitude, 6), longitude=round(longitude, 6), name=name)]


class NominatimGeocodingProvider(BaseGeocodingProvider):
    def __init__(self, base_url: str, user_agent: str) -> None:
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent

    def geocode(self, address: str) -> List[Placemark]:
        response = requests.get(
            f"{self.base_url}/search",
            params={"q": address, "format": "jsonv2", "addressdetails": 1, "limit": 5},
            headers={"User-Agent": self.user_agent},
            timeout=_DEFAULT_TIMEOUT,
        )
        if response.status_code == 429:
            raise GeocodingError(GeocodingError.RATE_LIMIT_EXCEEDED)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            raise RuntimeError("Unexpected Nominatim response structure")
        placemarks: List[Placemark] = []
        for item in payload:
            try:
                latitude = float(item["lat"])
                longitude = float(item["lon"])
            except (KeyError, TypeError, ValueError):
                continue
            details = item.get("address") or {}
            road = details.get("road")
            if road and details.get("house_number"):
                road = f"{details['house_number']} {road}"
            placemarks.append(
                Placemark(
                    latitude=latitude,
                    longitude=longitude,
                    name=item.get("name") or None,
                    thoroughfare=road,
                    locality=details.get("city") or details.get("town") or details.get("village"),
                    administrative_area=details.get("state"),
                    country=details.get("country"),
                )
            )
        return placemarks


class GeocodingService:
    """Rate-limited address lookups and spot location verification."""

    def __init__(
        self,
        config: Optional[GeocodingConfig] = None,
        *,
        provider: Optional[BaseGeocodingProvider] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or GeocodingConfig.from_env()
        self._provider = provider if provider is not None else self._build_provider()
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request_at: Optional[float] = None
        self.is_geocoding = False
        self.progress = 0.0

    def _build_provider(self) -> Optional[BaseGeocodingProvider]:
        if not self.config.is_enabled:
            return None
        if self.config.provider == "nominatim":
            return NominatimGeocodingProvider(
                base_url=self.config.base_url or "https://nominatim.openstreetmap.org",
                user_agent=self.config.user_agent,
            )
        if self.config.provider == "mock":
            return MockGeocodingProvider()
        return None

    @property
    def is_enabled(self) -> bool:
        return self._provider is not None

    def _throttle(self) -> None:
        if self._last_request_at is not None:
            elapsed = time.monotonic() - self._last_request_at
            wait = self.config.min_interval - elapsed
            if wait > 0:
                self._sleep(wait)
        self._last_request_at = time.monotonic()

    def geocode_address(self, address: str) -> List[Placemark]:
        if not address or not address.strip():
            raise GeocodingError(GeocodingError.INVALID_ADDRESS)
        if self._provider is None:
            raise GeocodingError(GeocodingError.GEOCODING_FAILED, "geocoding provider is disabled")
        with self._lock:
            self._throttle()
            try:
                return self._provider.geocode(address.strip())
            except GeocodingError:
                raise
            except (requests.RequestException, RuntimeError, ValueError) as exc:
                raise GeocodingError(GeocodingError.GEOCODING_FAILED, str(exc)) from exc

    def coordinates_for(self, address: str) -> Optional[Tuple[float, float]]:
        """First placemark's coordinates, or ``None`` when nothing matched."""
        placemarks = self.geocode_address(address)
        for placemark in placemarks:
            if is_valid_coordinate(placemark.latitude, placemark.longitude):
                return placemark.latitude, placemark.longitude
        return None

    @staticmethod
    def formatted_address(placemark: Placemark) -> str:
        return placemark.formatted_address

    @staticmethod
    def distance_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        return distance_between(lat1, lon1, lat2, lon2)

    @staticmethod
    def is_valid_coordinate(latitude: float, longitude: float) -> bool:
        return is_valid_coordinate(latitude, longitude)

    def verify_spot_location(self, db: Session, spot: models.Spot) -> bool:
        """Geocode the spot's address and store the result when it moved.

        Returns whether the spot was updated. Lookup failures are logged and
        reported as ``False``.
        """
        self.is_geocoding = True
        try:
            try:
                coordinates = self.coordinates_for(spot.address or "")
            except GeocodingError as exc:
                logger.warning("Location verification failed for %s: %s", spot.name, exc)
                return False
            if coordinates is None:
                logger.info("No geocoding results for %s", spot.address)
                return False
            latitude, longitude = coordinates
            should_update = True
            if has_coordinates(spot.latitude, spot.longitude):
                moved = distance_between(spot.latitude, spot.longitude, latitude, longitude)
                should_update = moved > LOCATION_UPDATE_THRESHOLD_METERS
            if not should_update:
                return False
            spot.latitude = latitude
            spot.longitude = longitude
            spot.last_modified = models.now_utc()
            try:
                db.commit()
            except Exception as exc:
                db.rollback()
                logger.error("Failed to save verified location for %s: %s", spot.name, exc)
                return False
            logger.info(
                "Updated spot location",
                extra={"spot_id": str(spot.id), "latitude": latitude, "longitude": longitude},
            )
            return True
        finally:
            self.is_geocoding = False

    def batch_geocode_spots(
        self,
        db: Session,
        spots: Sequence[models.Spot],
        *,
        delay: float = BATCH_SPOT_DELAY_SECONDS,
    ) -> int:
        updated = 0
        total = len(spots)
        self.progress = 0.0
        for index, spot in enumerate(spots):
            if self.verify_spot_location(db, spot):
                updated += 1
            self.progress = (index + 1) / total
            if delay > 0 and index < total - 1:
                self._sleep(delay)
        self.progress = 1.0
        logger.info("Batch geocoding finished", extra={"spots": total, "updated": updated})
        return updated


_geocoding_service: Optional[GeocodingService] = None


def get_geocoding_service() -> GeocodingService:
    global _geocoding_service
    if _geocoding_service is None:
        _geocoding_service = GeocodingService()
    return _geocoding_service


def reset_geocoding_service_for_tests() -> None:  # pragma: no cover - used in tests
    global _geocoding_service
    _geocoding_service = None
