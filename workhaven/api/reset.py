"""Database reset endpoints (local store, cloud records, or both)."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from workhaven.db import schemas
from workhaven.db.database import get_db
from workhaven.api.deps import get_sync_manager
from workhaven.services.cloud_sync import CloudSyncManager
from workhaven.services.reset_service import DatabaseResetService

router = APIRouter(prefix="/reset", tags=["reset"])


@router.post("/", response_model=schemas.ResetResult)
def reset_endpoint(
    request: schemas.ResetRequest,
    db: Session = Depends(get_db),
    manager: CloudSyncManager = Depends(get_sync_manager),
):
    try:
        return DatabaseResetService(manager).reset(db, request.kind)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/stats")
def reset_stats_endpoint(db: Session = Depends(get_db), manager: CloudSyncManager = Depends(get_sync_manager)):
    service = DatabaseResetService(manager)
    stats = service.database_stats(db)
    stats["is_empty"] = service.is_database_empty(db)
    return stats
