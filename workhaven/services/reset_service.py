"""Wipes local and/or remote data on request."""
from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from workhaven.db import models, schemas
from workhaven.db.repositories import notifications as repo_notifications
from workhaven.db.repositories import spots as repo_spots
from workhaven.services.cloud_sync import RECORD_TYPE, CloudSyncError, CloudSyncManager, get_cloud_sync_manager

logger = logging.getLogger(__name__)

RESET_LOCAL = "local"
RESET_CLOUD = "cloud"
RESET_COMPLETE = "complete"
RESET_KINDS = (RESET_LOCAL, RESET_CLOUD, RESET_COMPLETE)


class DatabaseResetService:
    def __init__(self, sync_manager: Optional[CloudSyncManager] = None) -> None:
        self._sync_manager = sync_manager
        self.reset_status = ""

    @property
    def sync_manager(self) -> CloudSyncManager:
        if self._sync_manager is None:
            self._sync_manager = get_cloud_sync_manager()
        return self._sync_manager

    def reset(self, db: Session, kind: str = RESET_COMPLETE) -> schemas.ResetResult:
        if kind not in RESET_KINDS:
            raise ValueError(f"Unknown reset kind '{kind}'; expected one of {', '.join(RESET_KINDS)}")
        result = schemas.ResetResult(kind=kind, status="Starting reset...")
        self.reset_status = result.status
        try:
            if kind in (RESET_LOCAL, RESET_COMPLETE):
                self.reset_status = "Clearing local data..."
                result.local_spots_deleted = repo_spots.delete_all_spots(db)
                repo_notifications.delete_all_notifications(db)
                self.reset_status = "Local data cleared"
            if kind in (RESET_CLOUD, RESET_COMPLETE):
                self.reset_status = "Clearing cloud data..."
                result.remote_records_deleted = self.sync_manager.clear_remote_records()
                self.reset_status = "Cloud data cleared"
        except (CloudSyncError, RuntimeError) as exc:
            logger.error("Reset failed: %s", exc, extra={"kind": kind})
            result.error = f"Reset failed: {exc}"
            result.status = "Reset failed"
            self.reset_status = result.status
            return result
        result.status = "Reset completed successfully!"
        self.reset_status = result.status
        logger.info(
            "Reset completed",
            extra={
                "kind": kind,
                "local_spots_deleted": result.local_spots_deleted,
                "remote_records_deleted": result.remote_records_deleted,
            },
        )
        return result

    def database_stats(self, db: Session) -> Dict[str, int]:
        remote = 0
        store = self.sync_manager.store
        if store is not None:
            try:
                remote = len(store.query(RECORD_TYPE))
            except CloudSyncError as exc:
                logger.warning("Could not count cloud records: %s", exc)
        return {
            "local_spots": repo_spots.count_spots(db),
            "local_ratings": db.query(func.count(models.UserRating.id)).scalar() or 0,
            "cloud_records": remote,
        }

    def is_database_empty(self, db: Session) -> bool:
        return repo_spots.count_spots(db) == 0
