"""
Seed data import: city CSV files, built-in fallback rows and geocoding.

The flow for one city is linear: skip when the city is already present,
clean up duplicates, load ``<City>_Work_Spots.csv`` (or the built-in rows),
insert rows that carry coordinates, then geocode the rest in rate-limited
batches. A process-wide lock keeps a second import from running at the
same time.
"""
from __future__ import annotations

import csv
import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workhaven.db import models, schemas
from workhaven.db.database import SessionLocal
from workhaven.db.repositories import spots as repo_spots
from workhaven.services.geocoding_service import GeocodingError, GeocodingService, get_geocoding_service
from workhaven.services.notification_service import NotificationService, NotificationSettings
from workhaven.utils.geo import is_valid_coordinate
from workhaven.utils.ratings import NoiseRating

logger = logging.getLogger(__name__)

AVAILABLE_CITIES: Tuple[str, ...] = ("Boise", "Austin", "Seattle", "Murrieta")
CSV_COLUMNS = ("name", "city", "wifi", "noise", "photo_url", "lat", "lng")

GEOCODING_BATCH_SIZE = 10
GEOCODING_BATCH_DELAY_SECONDS = 1.0

RESULT_SUCCESS = "success"
RESULT_SKIPPED = "skipped"
RESULT_ERROR = "error"


class DataImportError(Exception):
    FILE_NOT_FOUND = "file_not_found"
    INVALID_DATA = "invalid_data"
    EMPTY_FILE = "empty_file"

    _MESSAGES = {
        FILE_NOT_FOUND: "CSV file not found",
        INVALID_DATA: "CSV file is not valid UTF-8 text",
        EMPTY_FILE: "CSV file has no data rows",
    }

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        self.code = code
        message = self._MESSAGES.get(code, code)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


@dataclass
class CsvSpot:
    name: str
    city: str
    wifi: str
    noise: str
    photo_url: Optional[str] = None
    latitude: float = 0.0
    longitude: float = 0.0
    needs_geocoding: bool = False


@dataclass
class CsvParseResult:
    rows: List[CsvSpot] = field(default_factory=list)
    errors: int = 0


# Built-in rows used when a city's CSV file is missing or unreadable
FALLBACK_SPOTS: Tuple[CsvSpot, ...] = (
    CsvSpot("Neckar Coffee", "Boise ID", "Strong", "Low", None, 43.6150, -116.2023),
    CsvSpot("Flying M Coffee", "Boise ID", "Available", "Medium", None, 43.6125, -116.2025),
    CsvSpot("Dawson Taylor Coffee", "Boise ID", "Fast", "Low", None, 43.6140, -116.2010),
)

# In-memory preview data
PREVIEW_SPOTS: Tuple[Dict, ...] = (
    {"name": "Blue Bottle Coffee", "address": "66 Mint St, San Francisco, CA", "latitude": 37.7749,
     "longitude": -122.4194, "wifi_rating": 4, "noise_rating": "Low", "outlets": True,
     "tips": "Great coffee and fast wifi"},
    {"name": "Philz Coffee", "address": "3101 24th St, San Francisco, CA", "latitude": 37.7521,
     "longitude": -122.4180, "wifi_rating": 5, "noise_rating": "Medium", "outlets": True,
     "tips": "Amazing coffee blends"},
    {"name": "Ritual Coffee", "address": "1026 Valencia St, San Francisco, CA", "latitude": 37.7575,
     "longitude": -122.4219, "wifi_rating": 3, "noise_rating": "High", "outlets": False,
     "tips": "Popular spot, can get crowded"},
    {"name": "Sightglass Coffee", "address": "270 7th St, San Francisco, CA", "latitude": 37.7749,
     "longitude": -122.4194, "wifi_rating": 4, "noise_rating": "Low", "outlets": True,
     "tips": "Great for remote work"},
    {"name": "Four Barrel Coffee", "address": "375 Valencia St, San Francisco, CA", "latitude": 37.7611,
     "longitude": -122.4219, "wifi_rating": 3, "noise_rating": "Medium", "outlets": True,
     "tips": "Good coffee, limited seating"},
)


_WIFI_RATINGS = {"fast": 5, "strong": 5, "available": 4, "open": 4, "free": 3, "slow": 2}
_WIFI_TIPS = {
    "fast": "Excellent WiFi speed",
    "strong": "Excellent WiFi speed",
    "available": "Good WiFi available",
    "open": "Good WiFi available",
    "free": "Free WiFi",
    "slow": "WiFi can be slow",
}
_NOISE_TIPS = {"low": "Quiet environment", "high": "Can be noisy"}


def map_wifi_rating(value: str) -> int:
    return _WIFI_RATINGS.get((value or "").strip().lower(), 3)


def map_noise_rating(value: str) -> str:
    # "variable" and anything unrecognised land on Medium
    return NoiseRating.parse(value).value


def outlets_for(wifi: str) -> bool:
    """Good WiFi usually comes with power outlets."""
    return map_wifi_rating(wifi) >= 4


def generate_tips(row: CsvSpot) -> str:
    tips: List[str] = []
    wifi_tip = _WIFI_TIPS.get(row.wifi.strip().lower())
    if wifi_tip:
        tips.append(wifi_tip)
    noise_tip = _NOISE_TIPS.get(row.noise.strip().lower())
    if noise_tip:
        tips.append(noise_tip)
    if outlets_for(row.wifi):
        tips.append("Power outlets available")
    return ". ".join(tips)


def _parse_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_csv(text: str) -> CsvParseResult:
    """Parse a work-spots CSV export (header row first)."""
    lines = text.splitlines()
    if len(lines) <= 1:
        raise DataImportError(DataImportError.EMPTY_FILE)

    result = CsvParseResult()
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        columns = next(csv.reader([line]))
        if len(columns) < len(CSV_COLUMNS):
            logger.error(
                "Line %d: insufficient columns (expected %d, got %d)",
                line_number, len(CSV_COLUMNS), len(columns),
            )
            result.errors += 1
            continue

        name, city, wifi, noise, photo_url, raw_lat, raw_lng = (c.strip() for c in columns[:7])
        if not name:
            logger.error("Line %d: empty name field", line_number)
            result.errors += 1
            continue

        latitude = _parse_float(raw_lat)
        longitude = _parse_float(raw_lng)
        needs_geocoding = False
        if latitude is None or longitude is None:
            logger.warning("Line %d: missing coordinates for '%s', will geocode", line_number, name)
            latitude, longitude, needs_geocoding = 0.0, 0.0, True
        elif not is_valid_coordinate(latitude, longitude):
            logger.warning(
                "Line %d: invalid coordinates for '%s' (%s, %s), will geocode",
                line_number, name, latitude, longitude,
            )
            latitude, longitude, needs_geocoding = 0.0, 0.0, True

        result.rows.append(
            CsvSpot(
                name=name,
                city=city,
                wifi=wifi,
                noise=noise,
                photo_url=photo_url or None,
                latitude=latitude,
                longitude=longitude,
                needs_geocoding=needs_geocoding,
            )
        )
    logger.info("CSV import summary: %d valid rows, %d errors", len(result.rows), result.errors)
    return result


def default_data_dir() -> Path:
    return Path(os.getenv("WORKHAVEN_DATA_DIR", "data"))


# Process-wide guard: one import at a time, whichever importer instance asks
_IMPORT_LOCK = threading.Lock()


class DataImporter:
    """Imports city seed data into the local store."""

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        geocoder: Optional[GeocodingService] = None,
        notification_settings: Optional[NotificationSettings] = None,
        data_dir: Optional[Path] = None,
        batch_size: int = GEOCODING_BATCH_SIZE,
        batch_delay: float = GEOCODING_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session_factory = session_factory
        self._geocoder = geocoder
        self._notification_settings = notification_settings
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self._sleep = sleep
        self.status = schemas.ImportStatus(available_cities=list(AVAILABLE_CITIES))

    @property
    def geocoder(self) -> GeocodingService:
        if self._geocoder is None:
            self._geocoder = get_geocoding_service()
        return self._geocoder

    @property
    def is_importing(self) -> bool:
        return _IMPORT_LOCK.locked()

    @contextmanager
    def _session_scope(self, db: Optional[Session]):
        if db is not None:
            yield db
            return
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def _set_status(self, message: str, progress: Optional[float] = None) -> None:
        self.status.status = message
        if progress is not None:
            self.status.progress = max(0.0, min(1.0, progress))

    def current_status(self) -> schemas.ImportStatus:
        snapshot = self.status.model_copy()
        snapshot.is_importing = self.is_importing
        return snapshot

    # --- loading -------------------------------------------------------

    def csv_path(self, city: str) -> Path:
        return self.data_dir / f"{city}_Work_Spots.csv"

    def load_city_rows(self, city: str) -> CsvParseResult:
        path = self.csv_path(city)
        if not path.is_file():
            raise DataImportError(DataImportError.FILE_NOT_FOUND, str(path))
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise DataImportError(DataImportError.INVALID_DATA, str(exc)) from exc
        except OSError as exc:
            raise DataImportError(DataImportError.FILE_NOT_FOUND, str(exc)) from exc
        return parse_csv(text)

    # --- import flow ---------------------------------------------------

    def import_city(self, city: str, db: Optional[Session] = None) -> schemas.ImportStatus:
        if not _IMPORT_LOCK.acquire(blocking=False):
            logger.warning("Import already in progress, skipping duplicate import request for %s", city)
            return self.current_status()
        try:
            self.status = schemas.ImportStatus(
                is_importing=True,
                status="Starting import...",
                available_cities=list(AVAILABLE_CITIES),
            )
            logger.info("Starting import", extra={"city": city})
            with self._session_scope(db) as session:
                self._import_city(session, city)
        finally:
            self.status.is_importing = False
            _IMPORT_LOCK.release()
        return self.current_status()

    def _import_city(self, db: Session, city: str) -> None:
        if repo_spots.address_contains(db, city, limit=1):
            logger.info("Found existing spots for %s, skipping import", city)
            self._set_status(f"Skipped import - {city} spots already exist")
            return

        self.cleanup_duplicates(db)

        try:
            parsed = self.load_city_rows(city)
            self._set_status("Loading data from CSV file...")
        except DataImportError as exc:
            logger.warning("Falling back to built-in data for %s: %s", city, exc)
            parsed = CsvParseResult(rows=list(FALLBACK_SPOTS))
            self._set_status("CSV file not found, using built-in data...")

        self.status.errors = parsed.errors
        if not self._import_rows(db, parsed.rows):
            return
        self._set_status(
            f"Import completed successfully! {len(parsed.rows)} spots imported.",
            progress=1.0,
        )

    def import_all_cities(self, db: Optional[Session] = None) -> List[schemas.ImportStatus]:
        return [self.import_city(city, db=db) for city in AVAILABLE_CITIES]

    def _import_rows(self, db: Session, rows: Sequence[CsvSpot]) -> bool:
        total = len(rows)
        with_coordinates = [r for r in rows if not r.needs_geocoding]
        needing_geocoding = [r for r in rows if r.needs_geocoding]
        logger.info(
            "Importing spots",
            extra={"with_coordinates": len(with_coordinates), "needs_geocoding": len(needing_geocoding)},
        )
        self._set_status("Importing spots to the local store...")

        try:
            for index, row in enumerate(with_coordinates):
                self._count(self._create_spot(db, row))
                if total:
                    self._set_status(
                        f"Imported {self.status.imported} of {total} spots... (Skipped: {self.status.skipped})",
                        progress=(index + 1) / total * 0.5,
                    )

            if needing_geocoding:
                self._set_status(f"Geocoding {len(needing_geocoding)} spots for accurate coordinates...")
                self._geocode_and_import(db, needing_geocoding, total, len(with_coordinates))

            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to save imported spots: %s", exc)
            self._set_status(f"Import failed: {exc}")
            return False

        logger.info(
            "Saved imported spots",
            extra={
                "imported": self.status.imported,
                "geocoded": self.status.geocoded,
                "skipped": self.status.skipped,
                "errors": self.status.errors,
            },
        )
        return True

    def _count(self, result: str) -> None:
        if result == RESULT_SUCCESS:
            self.status.imported += 1
        elif result == RESULT_SKIPPED:
            self.status.skipped += 1
        else:
            self.status.errors += 1

    def _geocode_and_import(self, db: Session, rows: Sequence[CsvSpot], total: int, already_done: int) -> None:
        batch_count = (len(rows) + self.batch_size - 1) // self.batch_size
        for batch_index in range(batch_count):
            batch = rows[batch_index * self.batch_size:(batch_index + 1) * self.batch_size]
            logger.info("Geocoding batch %d/%d (%d spots)", batch_index + 1, batch_count, len(batch))
            for offset, row in enumerate(batch):
                address = f"{row.name}, {row.city}"
                resolved = row
                try:
                    coordinates = self.geocoder.coordinates_for(address)
                except GeocodingError as exc:
                    logger.warning("Geocoding failed for %s: %s, using CSV coordinates", address, exc)
                    coordinates = None
                else:
                    if coordinates is None:
                        logger.info("No geocoding results for %s, using CSV coordinates", address)
                if coordinates is not None:
                    resolved = CsvSpot(
                        name=row.name,
                        city=row.city,
                        wifi=row.wifi,
                        noise=row.noise,
                        photo_url=row.photo_url,
                        latitude=coordinates[0],
                        longitude=coordinates[1],
                    )

                result = self._create_spot(db, resolved)
                self._count(result)
                if result == RESULT_SUCCESS:
                    self.status.geocoded += 1

                position = already_done + batch_index * self.batch_size + offset + 1
                self._set_status(
                    f"Geocoded {self.status.geocoded} of {len(rows)} spots... "
                    f"(Total: {self.status.imported})",
                    progress=position / total if total else 1.0,
                )
            if batch_index < batch_count - 1 and self.batch_delay > 0:
                self._sleep(self.batch_delay)

    def _create_spot(self, db: Session, row: CsvSpot) -> str:
        if repo_spots.get_spot_by_name_and_address(db, row.name, row.city):
            logger.warning("Spot '%s' in '%s' already exists, skipping", row.name, row.city)
            return RESULT_SKIPPED
        try:
            payload = schemas.SpotCreate(
                name=row.name,
                address=row.city,
                latitude=row.latitude,
                longitude=row.longitude,
                wifi_rating=map_wifi_rating(row.wifi),
                noise_rating=map_noise_rating(row.noise),
                outlets=outlets_for(row.wifi),
                tips=generate_tips(row),
                photo_url=row.photo_url,
            )
        except ValidationError as exc:
            logger.error("Failed to create spot '%s': %s", row.name, exc)
            return RESULT_ERROR

        spot = repo_spots.create_spot(db, payload, commit=False)
        NotificationService(db, self._notification_settings).notify_spot_added(spot)
        return RESULT_SUCCESS

    # --- maintenance ---------------------------------------------------

    def seed_if_empty(self, db: Optional[Session] = None) -> int:
        """Insert the built-in seed rows only when the store holds no spots."""
        with self._session_scope(db) as session:
            existing = repo_spots.count_spots(session)
            if existing:
                logger.info("Store already has %d spots; skipping seed", existing)
                return 0
            inserted = 0
            for row in FALLBACK_SPOTS:
                if self._create_spot(session, row) == RESULT_SUCCESS:
                    inserted += 1
            session.commit()
            logger.info("Seeded empty store", extra={"inserted": inserted})
            return inserted

    def seed_preview_spots(self, db: Optional[Session] = None) -> int:
        with self._session_scope(db) as session:
            if repo_spots.count_spots(session):
                return 0
            for values in PREVIEW_SPOTS:
                repo_spots.create_spot(session, schemas.SpotCreate(**values), commit=False)
            session.commit()
            return len(PREVIEW_SPOTS)

    def cleanup_duplicates(self, db: Optional[Session] = None) -> int:
        """Keep the most recently modified spot for each (name, address)."""
        with self._session_scope(db) as session:
            groups: Dict[Tuple[str, str], List[models.Spot]] = {}
            for spot in repo_spots.get_spots_newest_first(session):
                groups.setdefault((spot.name or "", spot.address or ""), []).append(spot)
            doomed = [s.id for group in groups.values() for s in group[1:]]
            if not doomed:
                logger.info("No duplicates found")
                return 0
            deleted = repo_spots.delete_spots(session, doomed)
            logger.info("Cleaned up %d duplicate spots", deleted)
            return deleted

    def clear_all_data(self, db: Optional[Session] = None) -> int:
        with self._session_scope(db) as session:
            deleted = repo_spots.delete_all_spots(session)
            logger.info("All data cleared", extra={"deleted": deleted})
            return deleted


_data_importer: Optional[DataImporter] = None


def get_data_importer() -> DataImporter:
    global _data_importer
    if _data_importer is None:
        _data_importer = DataImporter()
    return _data_importer


def reset_data_importer_for_tests() -> None:  # pragma: no cover - used in tests
    global _data_importer
    _data_importer = None
