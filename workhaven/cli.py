"""Command line entry point for seed import, sync, reset and discovery."""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import suppress

from workhaven.db import database
from workhaven.db.repositories import spots as repo_spots
from workhaven.services import (
    get_cloud_sync_manager,
    get_data_importer,
    get_discovery_service,
    get_geocoding_service,
)
from workhaven.services.import_service import AVAILABLE_CITIES
from workhaven.services.reset_service import RESET_COMPLETE, RESET_KINDS, DatabaseResetService
from workhaven.utils.geo import DEFAULT_RADIUS_METERS, has_coordinates


logger = logging.getLogger("workhaven.cli")


# Access SessionLocal dynamically so test fixtures that rebind the
# sessionmaker are respected.
SessionLocal = lambda: database.SessionLocal()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="workhaven", description="Manage the WorkHaven spot store")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import seed spots from the city CSV files")
    p_import.add_argument(
        "--city",
        choices=AVAILABLE_CITIES,
        help="Import a single city (default: every available city)",
    )

    p_seed = sub.add_parser("seed", help="Insert the built-in spots when the store is empty")
    p_seed.add_argument("--preview", action="store_true", help="Insert the preview sample spots instead")

    sub.add_parser("geocode", help="Geocode spots that have no coordinates yet")
    sub.add_parser("sync", help="Run one cloud record sync")

    p_reset = sub.add_parser("reset", help="Delete local spots, cloud records, or both")
    p_reset.add_argument("--kind", choices=RESET_KINDS, default=RESET_COMPLETE)

    p_discover = sub.add_parser("discover", help="Discover work spots around a location")
    p_discover.add_argument("--latitude", type=float, required=True)
    p_discover.add_argument("--longitude", type=float, required=True)
    p_discover.add_argument(
        "--radius",
        type=float,
        default=DEFAULT_RADIUS_METERS,
        help=f"Search radius in meters (default: {DEFAULT_RADIUS_METERS:.0f})",
    )

    sub.add_parser("clear", help="Delete every local spot")
    return parser.parse_args(argv)


def _run_import(session, city: str | None) -> int:
    importer = get_data_importer()
    statuses = [importer.import_city(city, db=session)] if city else importer.import_all_cities(db=session)
    for status in statuses:
        print(status.status)
    imported = sum(s.imported for s in statuses)
    print(f"Imported {imported} spots ({sum(s.skipped for s in statuses)} skipped, {sum(s.errors for s in statuses)} errors).")
    return 0


def _run_seed(session, preview: bool) -> int:
    importer = get_data_importer()
    inserted = importer.seed_preview_spots(db=session) if preview else importer.seed_if_empty(db=session)
    print(f"Inserted {inserted} spots.")
    return 0


def _run_geocode(session) -> int:
    geocoder = get_geocoding_service()
    if not geocoder.is_enabled:
        print("Geocoding provider is disabled. Set GEOCODING_PROVIDER before geocoding.", file=sys.stderr)
        return 1
    missing = [s for s in repo_spots.get_all_spots(session) if not has_coordinates(s.latitude, s.longitude)]
    updated = geocoder.batch_geocode_spots(session, missing) if missing else 0
    print(f"Geocoded {updated} of {len(missing)} spots without coordinates.")
    return 0


def _run_sync(session) -> int:
    manager = get_cloud_sync_manager()
    if not manager.is_enabled:
        print("Cloud sync is disabled. Set CLOUD_SYNC_PROVIDER before syncing.", file=sys.stderr)
        return 1
    status = manager.sync(db=session)
    if status.sync_error:
        print(status.sync_error, file=sys.stderr)
        return 1
    print(f"Sync complete: {status.uploaded} uploaded, {status.created} created, {status.updated} updated.")
    return 0


def _run_reset(session, kind: str) -> int:
    result = DatabaseResetService(get_cloud_sync_manager()).reset(session, kind)
    print(result.status)
    return 1 if result.error else 0


def _run_discover(session, latitude: float, longitude: float, radius: float) -> int:
    service = get_discovery_service()
    spots = service.discover_spots(session, latitude, longitude, radius)
    if service.discovery_error:
        print(service.discovery_error, file=sys.stderr)
        return 1
    print(service.api_key_status)
    for spot in spots:
        print(f"- {spot.name} ({spot.address})")
    print(service.discovery_summary)
    return 0


def _run_clear(session) -> int:
    deleted = get_data_importer().clear_all_data(db=session)
    print(f"Deleted {deleted} spots.")
    return 0


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    database.init_db()
    session = SessionLocal()
    try:
        logger.info("Running command", extra={"command": args.command})
        if args.command == "import":
            return _run_import(session, args.city)
        if args.command == "seed":
            return _run_seed(session, args.preview)
        if args.command == "geocode":
            return _run_geocode(session)
        if args.command == "sync":
            return _run_sync(session)
        if args.command == "reset":
            return _run_reset(session, args.kind)
        if args.command == "discover":
            return _run_discover(session, args.latitude, args.longitude, args.radius)
        return _run_clear(session)
    finally:
        with suppress(Exception):
            session.close()


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
