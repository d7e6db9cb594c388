"""
Operational endpoints: health, build metadata and active feature flags.
"""
from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workhaven.db.database import get_db
from workhaven.utils.feature_flags import get_feature_flags
from workhaven.workers.startup_import import import_started

logger = logging.getLogger(__name__)

SERVICE_NAME = "workhaven-service"

router = APIRouter(tags=["support"])  # keep paths stable (no prefix)


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a round trip to the spot store."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        logger.error("Health check could not reach the database: %s", exc)
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": SERVICE_NAME,
        "database": database,
        "startup_import_started": import_started(),
    }


@router.get("/build-info")
def get_build_info():
    return {
        "service_name": SERVICE_NAME,
        "version": os.getenv("VERSION", "unknown"),
        "build_sha": os.getenv("BUILD_SHA") or None,
        "build_timestamp": os.getenv("BUILD_TIMESTAMP") or None,
        "image_tag": os.getenv("IMAGE_TAG") or None,
    }


@router.get("/feature-flags")
def feature_flags_endpoint():
    return get_feature_flags()
