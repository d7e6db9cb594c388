"""
Startup coordinator: seed the store, geocode, then sync.

Runs once per process as a background task on application startup. The
blocking steps (database, HTTP) run in worker threads so the event loop
keeps serving requests.
"""
from __future__ import annotations

import asyncio
import logging
import os
import threading
from typing import Any, Dict, Optional

from workhaven.db import database
from workhaven.db.repositories import spots as repo_spots
from workhaven.services.cloud_sync import CloudSyncManager, get_cloud_sync_manager
from workhaven.services.geocoding_service import GeocodingService, get_geocoding_service
from workhaven.services.import_service import DataImporter, get_data_importer
from workhaven.utils.geo import has_coordinates

logger = logging.getLogger(__name__)

DEFAULT_SYNC_DELAY_SECONDS = 2.0

_import_started = False
_state_lock = threading.Lock()


def sync_delay_seconds() -> float:
    raw = os.getenv("SYNC_AFTER_IMPORT_DELAY_SECONDS")
    if raw is None:
        return DEFAULT_SYNC_DELAY_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning("Invalid SYNC_AFTER_IMPORT_DELAY_SECONDS '%s'; using %.1f", raw, DEFAULT_SYNC_DELAY_SECONDS)
        return DEFAULT_SYNC_DELAY_SECONDS


def mark_import_started() -> bool:
    """Claim the one startup import for this process; False if already claimed."""
    global _import_started
    with _state_lock:
        if _import_started:
            return False
        _import_started = True
        return True


def import_started() -> bool:
    return _import_started


def reset_startup_state_for_tests() -> None:  # pragma: no cover - used in tests
    global _import_started
    with _state_lock:
        _import_started = False


def seed_and_geocode(importer: DataImporter, geocoder: GeocodingService) -> Dict[str, Any]:
    """Import seed data into an empty store, then geocode spots lacking coordinates."""
    db = database.SessionLocal()
    try:
        existing = repo_spots.count_spots(db)
        imported = 0
        if existing == 0:
            for status in importer.import_all_cities(db=db):
                imported += status.imported
        else:
            logger.info("Store already has %d spots; skipping seed import", existing)

        geocoded = 0
        if geocoder.is_enabled:
            missing = [s for s in repo_spots.get_all_spots(db) if not has_coordinates(s.latitude, s.longitude)]
            if missing:
                geocoded = geocoder.batch_geocode_spots(db, missing)
        return {"existing": existing, "imported": imported, "geocoded": geocoded}
    finally:
        db.close()


async def run_import_then_sync(
    *,
    importer: Optional[DataImporter] = None,
    geocoder: Optional[GeocodingService] = None,
    sync_manager: Optional[CloudSyncManager] = None,
    delay: Optional[float] = None,
) -> Dict[str, Any]:
    if not mark_import_started():
        logger.info("Startup import already started; skipping")
        return {"status": "skipped"}

    importer = importer or get_data_importer()
    geocoder = geocoder or get_geocoding_service()
    sync_manager = sync_manager or get_cloud_sync_manager()
    delay = sync_delay_seconds() if delay is None else delay

    await asyncio.to_thread(database.init_db)
    summary = await asyncio.to_thread(seed_and_geocode, importer, geocoder)
    logger.info("Startup import finished", extra=summary)

    if delay > 0:
        await asyncio.sleep(delay)
    sync_status = await asyncio.to_thread(sync_manager.sync)
    summary.update(
        {
            "status": "completed",
            "sync_error": sync_status.sync_error,
            "last_sync_at": sync_status.last_sync_at.isoformat() if sync_status.last_sync_at else None,
        }
    )
    return summary


def _log_task_result(task: "asyncio.Task") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Startup import failed: %s", exc, exc_info=exc)


def schedule_startup_import() -> "asyncio.Task":
    task = asyncio.create_task(run_import_then_sync())
    task.add_done_callback(_log_task_result)
    return task
