"""Cloud record sync endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from workhaven.db import schemas
from workhaven.db.database import get_db
from workhaven.api.deps import get_sync_manager
from workhaven.services.cloud_sync import CloudSyncError, CloudSyncManager

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status", response_model=schemas.SyncStatus)
def sync_status_endpoint(manager: CloudSyncManager = Depends(get_sync_manager)):
    return manager.status()


@router.post("/", response_model=schemas.SyncStatus)
def run_sync_endpoint(db: Session = Depends(get_db), manager: CloudSyncManager = Depends(get_sync_manager)):
    return manager.sync(db=db)


@router.post("/enable", response_model=schemas.SyncStatus)
def enable_sync_endpoint(manager: CloudSyncManager = Depends(get_sync_manager)):
    manager.enable()
    return manager.status()


@router.delete("/remote")
def clear_remote_endpoint(manager: CloudSyncManager = Depends(get_sync_manager)):
    try:
        deleted = manager.clear_remote_records()
    except CloudSyncError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.user_message)
    return {"deleted": deleted}
