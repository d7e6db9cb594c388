"""Location-based spot discovery enriched through a chat-completions API."""
from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import requests
from dotenv import dotenv_values
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workhaven.db import models, schemas
from workhaven.db.repositories import spots as repo_spots
from workhaven.utils.geo import DEFAULT_RADIUS_METERS, distance_between
from workhaven.utils.ratings import NoiseRating

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = (3, 60)

SEARCH_CATEGORIES = ("coffee shop", "library", "park", "co-working space")
MAX_DISCOVERED_SPOTS = 15

GROK_API_URL = "https://api.x.ai/v1/chat/completions"
GROK_MODEL = "grok-4-fast-non-reasoning"
API_KEY_PLACEHOLDER = "YOUR_GROK_API_KEY_HERE"
DEFAULT_SECRETS_FILE = "secrets.env"

ENRICHMENT_PROMPT = (
    "For {name} at {address}, estimate WiFi rating (1-5 stars), noise level (Low/Medium/High), "
    "plugs (Yes/No), and a short tip based on typical similar venues. "
    'Respond in JSON: {{"wifi": number, "noise": "string", "plugs": bool, "tip": "string"}}.'
)

# Spacing for the business-details refresh (the place API allows ~50 requests a minute)
DETAILS_BATCH_SIZE = 10
DETAILS_ITEM_DELAY_SECONDS = 1.5
DETAILS_BATCH_DELAY_SECONDS = 3.0


class DiscoveryError(Exception):
    NO_SPOTS_FOUND = "no_spots_found"
    API_FAILURE = "api_failure"
    INVALID_RESPONSE = "invalid_response"
    NETWORK_ERROR = "network_error"
    PARSING_ERROR = "parsing_error"
    DATABASE_ERROR = "database_error"

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        messages = {
            self.NO_SPOTS_FOUND: "No work spots found in the area",
            self.API_FAILURE: "API enrichment failed",
            self.INVALID_RESPONSE: "Invalid response from enrichment API",
            self.NETWORK_ERROR: "Network error",
            self.PARSING_ERROR: "Failed to parse API response",
            self.DATABASE_ERROR: "Database error",
        }
        message = messages.get(code)
        if message is None:
            message = detail or code
        elif detail and code not in (self.NO_SPOTS_FOUND, self.INVALID_RESPONSE):
            message = f"{message}: {detail}"
        super().__init__(message)


@dataclass
class Place:
    name: str
    address: str
    latitude: float
    longitude: float
    phone_number: Optional[str] = None
    website_url: Optional[str] = None

    @property
    def coordinate_key(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass
class EnrichedSpotData:
    wifi: int = 3
    noise: str = NoiseRating.MEDIUM.value
    plugs: bool = False
    tip: str = "Auto-discovered"


def default_enrichment() -> EnrichedSpotData:
    return EnrichedSpotData()


def parse_enrichment_response(text: str) -> EnrichedSpotData:
    """Pull the JSON object out of a model reply; fall back to defaults."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        logger.warning("No JSON object in enrichment response")
        return default_enrichment()
    try:
        payload = json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse enrichment response: %s", exc)
        return default_enrichment()
    if not isinstance(payload, dict):
        return default_enrichment()
    try:
        wifi = int(payload["wifi"])
        noise = str(payload["noise"])
        plugs = payload["plugs"]
        tip = payload["tip"]
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Enrichment response missing fields: %s", exc)
        return default_enrichment()
    if isinstance(plugs, str):
        plugs = plugs.strip().lower() in {"yes", "true", "1"}
    tip = "" if tip is None else str(tip).strip()
    return EnrichedSpotData(
        wifi=min(5, max(1, wifi)),
        noise=NoiseRating.parse(noise).value,
        plugs=bool(plugs),
        tip=tip or EnrichedSpotData.tip,
    )


def load_grok_api_key() -> Optional[str]:
    """API key from ``GROK_API_KEY`` or the secrets file; placeholders count as missing."""
    candidates = [os.getenv("GROK_API_KEY")]
    secrets_file = os.getenv("WORKHAVEN_SECRETS_FILE", DEFAULT_SECRETS_FILE)
    if os.path.isfile(secrets_file):
        candidates.append(dotenv_values(secrets_file).get("GROK_API_KEY"))
    for key in candidates:
        if key and key.strip() and key.strip() != API_KEY_PLACEHOLDER:
            return key.strip()
    return None


class BasePlaceProvider:
    def search(self, query: str, latitude: float, longitude: float, radius_meters: float) -> List[Place]:
        raise NotImplementedError


class MockPlaceProvider(BasePlaceProvider):
    """Two deterministic places per query, a few hundred meters from the origin."""

    def search(self, query: str, latitude: float, longitude: float, radius_meters: float) -> List[Place]:
        digest = hashlib.sha256(query.encode("utf-8")).digest()
        places = []
        for i in range(2):
            offset = (digest[i] % 50 + 10) / 10000.0
            places.append(
                Place(
                    name=f"{query.title()} {i + 1}",
                    address=f"{i + 1} {query.title()} Way",
                    latitude=round(latitude + offset, 6),
                    longitude=round(longitude - offset, 6),
                )
            )
        return places


class NominatimPlaceProvider(BasePlaceProvider):
    def __init__(self, base_url: str, user_agent: str) -> None:
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent

    def search(self, query: str, latitude: float, longitude: float, radius_meters: float) -> List[Place]:
        # Bounding box around the origin (1 degree of latitude is ~111 km)
        delta = radius_meters / 111_000.0
        viewbox = f"{longitude - delta},{latitude + delta},{longitude + delta},{latitude - delta}"
        response = requests.get(
            f"{self.base_url}/search",
            params={
                "q": query,
                "format": "jsonv2",
                "viewbox": viewbox,
                "bounded": 1,
                "extratags": 1,
                "limit": MAX_DISCOVERED_SPOTS,
            },
            headers={"User-Agent": self.user_agent},
            timeout=_DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        places: List[Place] = []
        for item in response.json() or []:
            try:
                lat = float(item["lat"])
                lon = float(item["lon"])
            except (KeyError, TypeError, ValueError):
                continue
            tags = item.get("extratags") or {}
            places.append(
                Place(
                    name=item.get("name") or "Unknown",
                    address=item.get("display_name") or "Unknown Address",
                    latitude=lat,
                    longitude=lon,
                    phone_number=tags.get("phone") or tags.get("contact:phone") or None,
                    website_url=tags.get("website") or tags.get("contact:website") or None,
                )
            )
        return places


class GrokEnrichmentClient:
    def __init__(self, api_key: Optional[str], *, url: str = GROK_API_URL, model: str = GROK_MODEL) -> None:
        self.api_key = api_key
        self.url = url
        self.model = model

    def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise DiscoveryError(DiscoveryError.API_FAILURE, "No API key available")
        try:
            response = requests.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": 500,
                    "temperature": 0.7,
                },
                timeout=_DEFAULT_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise DiscoveryError(DiscoveryError.NETWORK_ERROR, str(exc)) from exc
        if response.status_code != 200:
            raise DiscoveryError(DiscoveryError.API_FAILURE, f"HTTP error: {response.status_code}")
        try:
            payload = response.json()
            return payload["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise DiscoveryError(DiscoveryError.INVALID_RESPONSE) from exc

    def enrich(self, name: str, address: str) -> EnrichedSpotData:
        if not self.api_key:
            logger.warning("No Grok API key available")
            return default_enrichment()
        try:
            content = self.complete(ENRICHMENT_PROMPT.format(name=name, address=address))
        except DiscoveryError as exc:
            logger.error("Grok API error for %s: %s", name, exc)
            return default_enrichment()
        return parse_enrichment_response(content)


@dataclass
class DiscoveryConfig:
    provider: str
    base_url: Optional[str] = None
    user_agent: str = "workhaven/0.1"

    @classmethod
    def from_env(cls) -> "DiscoveryConfig":
        provider = (os.getenv("DISCOVERY_PLACE_PROVIDER") or "nominatim").strip().lower()
        if provider in {"nominatim", "osm"}:
            return cls(
                provider="nominatim",
                base_url=os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org"),
                user_agent=os.getenv("GEOCODING_USER_AGENT", "workhaven/0.1"),
            )
        if provider == "mock":
            return cls(provider=provider)
        if provider in {"disabled", "none", "off", ""}:
            return cls(provider="disabled")
        logger.warning("Unknown DISCOVERY_PLACE_PROVIDER '%s'; discovery disabled.", provider)
        return cls(provider="disabled")


class SpotDiscoveryService:
    """Finds nearby venues, estimates their amenities and stores them as spots."""

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        *,
        place_provider: Optional[BasePlaceProvider] = None,
        enrichment_client: Optional[GrokEnrichmentClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or DiscoveryConfig.from_env()
        self.place_provider = place_provider if place_provider is not None else self._build_provider()
        self._enrichment_client = enrichment_client
        self._sleep = sleep
        self.is_discovering = False
        self.discovered_spot_ids: List = []
        self.discovery_error: Optional[str] = None

    def _build_provider(self) -> Optional[BasePlaceProvider]:
        if self.config.provider == "nominatim":
            return NominatimPlaceProvider(
                base_url=self.config.base_url or "https://nominatim.openstreetmap.org",
                user_agent=self.config.user_agent,
            )
        if self.config.provider == "mock":
            return MockPlaceProvider()
        return None

    @property
    def enrichment_client(self) -> GrokEnrichmentClient:
        # Re-read the key on demand so a key added at runtime is picked up
        if self._enrichment_client is None:
            return GrokEnrichmentClient(load_grok_api_key())
        return self._enrichment_client

    def has_api_key(self) -> bool:
        return bool(self.enrichment_client.api_key)

    @property
    def api_key_status(self) -> str:
        if self.has_api_key():
            return "API key configured"
        secrets_file = os.getenv("WORKHAVEN_SECRETS_FILE", DEFAULT_SECRETS_FILE)
        return f"API key not configured - add GROK_API_KEY to {secrets_file} or the environment"

    @property
    def discovery_summary(self) -> str:
        if not self.discovered_spot_ids:
            return "No spots discovered yet"
        return f"Discovered {len(self.discovered_spot_ids)} work spots"

    def status(self) -> schemas.DiscoveryStatus:
        return schemas.DiscoveryStatus(
            is_discovering=self.is_discovering,
            api_key_status=self.api_key_status,
            summary=self.discovery_summary,
            error=self.discovery_error,
        )

    def clear_error(self) -> None:
        self.discovery_error = None

    def existing_spots_near(
        self, db: Session, latitude: float, longitude: float, radius_meters: float
    ) -> List[models.Spot]:
        return [
            spot
            for spot in repo_spots.get_all_spots(db)
            if distance_between(latitude, longitude, spot.latitude, spot.longitude) <= radius_meters
        ]

    def search_places(self, latitude: float, longitude: float, radius_meters: float) -> List[Place]:
        if self.place_provider is None:
            raise DiscoveryError(DiscoveryError.NETWORK_ERROR, "place search is disabled")
        unique: Dict[str, Place] = {}
        for category in SEARCH_CATEGORIES:
            try:
                results = self.place_provider.search(category, latitude, longitude, radius_meters)
            except requests.RequestException as exc:
                raise DiscoveryError(DiscoveryError.NETWORK_ERROR, str(exc)) from exc
            for place in results:
                if place.coordinate_key in unique:
                    continue
                unique[place.coordinate_key] = place
                if len(unique) >= MAX_DISCOVERED_SPOTS:
                    return list(unique.values())
        return list(unique.values())

    def _spot_from_place(self, place: Place, enriched: EnrichedSpotData) -> schemas.SpotCreate:
        return schemas.SpotCreate(
            name=(place.name or "").strip() or "Unknown",
            address=(place.address or "").strip() or "Unknown Address",
            latitude=place.latitude,
            longitude=place.longitude,
            wifi_rating=enriched.wifi,
            noise_rating=enriched.noise,
            outlets=enriched.plugs,
            tips=enriched.tip,
            phone_number=place.phone_number or None,
            website_url=place.website_url or None,
        )

    def discover_spots(
        self,
        db: Session,
        latitude: float,
        longitude: float,
        radius_meters: float = DEFAULT_RADIUS_METERS,
    ) -> List[models.Spot]:
        """Existing spots in range, or freshly discovered ones when there are none."""
        self.is_discovering = True
        self.discovery_error = None
        try:
            existing = self.existing_spots_near(db, latitude, longitude, radius_meters)
            if existing:
                logger.info("Found %d existing spots in area", len(existing))
                self.discovered_spot_ids = [s.id for s in existing]
                return existing

            places = self.search_places(latitude, longitude, radius_meters)
            logger.info("Found %d potential spots from place search", len(places))
            client = self.enrichment_client
            saved: List[models.Spot] = []
            for place in places:
                enriched = client.enrich(place.name, place.address)
                try:
                    payload = self._spot_from_place(place, enriched)
                except ValidationError as exc:
                    logger.warning("Skipping invalid discovered place %r: %s", place.name, exc)
                    continue
                saved.append(repo_spots.create_spot(db, payload, commit=False))
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise DiscoveryError(DiscoveryError.DATABASE_ERROR, str(exc)) from exc
            for spot in saved:
                db.refresh(spot)
            logger.info("Saved %d discovered spots", len(saved))
            self.discovered_spot_ids = [s.id for s in saved]
            return saved
        except DiscoveryError as exc:
            logger.error("Discovery failed: %s", exc)
            self.discovery_error = str(exc)
            return []
        finally:
            self.is_discovering = False

    def refresh_business_details(self, db: Session, spots: Optional[Sequence[models.Spot]] = None) -> int:
        """Fill in phone numbers and websites for spots that lack them."""
        if self.place_provider is None:
            return 0
        if spots is None:
            spots = [s for s in repo_spots.get_all_spots(db) if not s.phone_number or not s.website_url]
        logger.info("Refreshing business details for %d spots", len(spots))
        updated = 0
        batches = [spots[i:i + DETAILS_BATCH_SIZE] for i in range(0, len(spots), DETAILS_BATCH_SIZE)]
        for batch_index, batch in enumerate(batches):
            for index, spot in enumerate(batch):
                if index > 0:
                    self._sleep(DETAILS_ITEM_DELAY_SECONDS)
                try:
                    matches = self.place_provider.search(
                        f"{spot.name} {spot.address}", spot.latitude, spot.longitude, 1000.0
                    )
                except requests.RequestException as exc:
                    logger.warning("Business lookup failed for %s: %s", spot.name, exc)
                    continue
                if not matches:
                    continue
                match = matches[0]
                changed = False
                if match.phone_number:
                    spot.phone_number = match.phone_number
                    changed = True
                if match.website_url:
                    spot.website_url = match.website_url
                    changed = True
                if changed:
                    spot.last_modified = models.now_utc()
                    updated += 1
            db.commit()
            if batch_index < len(batches) - 1:
                self._sleep(DETAILS_BATCH_DELAY_SECONDS)
        return updated


_discovery_service: Optional[SpotDiscoveryService] = None


def get_discovery_service() -> SpotDiscoveryService:
    global _discovery_service
    if _discovery_service is None:
        _discovery_service = SpotDiscoveryService()
    return _discovery_service


def reset_discovery_service_for_tests() -> None:  # pragma: no cover - used in tests
    global _discovery_service
    _discovery_service = None
