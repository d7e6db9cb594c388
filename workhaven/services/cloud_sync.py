"""
Cloud record sync: mirrors local spots into a remote record store.

A sync queries the remote ``Spot`` records once, uploads local spots that are
unlinked or newer than their record (batches of five), then merges the remote
records. Conflicts resolve by ``last_modified``:
the newer side wins and equal timestamps prefer the remote copy.
"""
from __future__ import annotations

import copy
import logging
import os
import re
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workhaven.db import models, schemas
from workhaven.db.database import SessionLocal
from workhaven.db.repositories import spots as repo_spots
from workhaven.utils import feature_flags
from workhaven.utils.ratings import NOISE_LEVELS

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = (3, 30)

RECORD_TYPE = "Spot"

UPLOAD_BATCH_SIZE = 5
UPLOAD_BATCH_DELAY_SECONDS = 2.0
DELETE_BATCH_SIZE = 10
DELETE_BATCH_DELAY_SECONDS = 0.5
MAX_CONSECUTIVE_ERRORS = 3

ACCOUNT_AVAILABLE = "available"

USE_LOCAL = "local"
USE_REMOTE = "remote"

_DISTANT_PAST = datetime.min.replace(tzinfo=UTC)


class FieldNames:
    NAME = "name"
    ADDRESS = "address"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    WIFI_RATING = "wifiRating"
    NOISE_RATING = "noiseRating"
    OUTLETS = "outlets"
    TIPS = "tips"
    PHOTO_URL = "photoURL"
    BUSINESS_HOURS = "businessHours"
    BUSINESS_IMAGE_URL = "businessImageURL"
    PHONE_NUMBER = "phoneNumber"
    WEBSITE_URL = "websiteURL"
    LAST_MODIFIED = "lastModified"
    LOCAL_ID = "localID"


# Optional text columns copied verbatim between a spot and its record
_TEXT_FIELDS = {
    FieldNames.TIPS: "tips",
    FieldNames.PHOTO_URL: "photo_url",
    FieldNames.BUSINESS_HOURS: "business_hours",
    FieldNames.BUSINESS_IMAGE_URL: "business_image_url",
    FieldNames.PHONE_NUMBER: "phone_number",
    FieldNames.WEBSITE_URL: "website_url",
}


class CloudSyncError(Exception):
    ACCOUNT_NOT_AVAILABLE = "account_not_available"
    RECORD_NOT_FOUND = "record_not_found"
    SYNC_FAILED = "sync_failed"
    BAD_CONTAINER = "bad_container"
    NOT_AUTHENTICATED = "not_authenticated"
    NETWORK_UNAVAILABLE = "network_unavailable"
    SERVER_REJECTED_REQUEST = "server_rejected_request"
    SERVICE_UNAVAILABLE = "service_unavailable"
    REQUEST_RATE_LIMITED = "request_rate_limited"
    INVALID_ARGUMENTS = "invalid_arguments"
    SERVER_RECORD_CHANGED = "server_record_changed"

    _MESSAGES = {
        ACCOUNT_NOT_AVAILABLE: "Cloud account is not available",
        RECORD_NOT_FOUND: "Cloud record not found",
        SYNC_FAILED: "Cloud synchronization failed",
        BAD_CONTAINER: "Cloud record store not configured. Please check your sync settings.",
        NOT_AUTHENTICATED: "Please sign in to your cloud account to enable sync.",
        NETWORK_UNAVAILABLE: "Network unavailable. Sync will retry later.",
        SERVER_REJECTED_REQUEST: "Cloud sync temporarily unavailable. Please try again later.",
        SERVICE_UNAVAILABLE: "Cloud sync temporarily unavailable. Please try again later.",
        REQUEST_RATE_LIMITED: "Cloud sync rate limited. Will retry automatically.",
        INVALID_ARGUMENTS: "Cloud record schema not properly configured. Please check the record store setup.",
        SERVER_RECORD_CHANGED: "Record already exists on the server",
    }

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        super().__init__(self._MESSAGES.get(code, detail or code))

    @property
    def user_message(self) -> str:
        return str(self)


DISABLED_MESSAGE = "Cloud sync disabled due to repeated errors. Please check your cloud sync configuration."


@dataclass
class RemoteRecord:
    record_id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    record_type: str = RECORD_TYPE


@dataclass
class RecordResult:
    record_id: str
    record: Optional[RemoteRecord] = None
    error: Optional[CloudSyncError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return models.as_utc(value)
    if isinstance(value, str):
        try:
            return models.as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


@dataclass
class CloudSyncConfig:
    provider: str
    base_url: Optional[str] = None
    api_token: Optional[str] = None
    container: str = "workhaven"

    @classmethod
    def from_env(cls) -> "CloudSyncConfig":
        provider = (os.getenv("CLOUD_SYNC_PROVIDER") or "disabled").strip().lower()
        container = os.getenv("CLOUD_SYNC_CONTAINER", "workhaven")
        if provider == "http":
            return cls(
                provider=provider,
                base_url=os.getenv("CLOUD_SYNC_BASE_URL"),
                api_token=os.getenv("CLOUD_SYNC_API_TOKEN"),
                container=container,
            )
        if provider in {"memory", "mock"}:
            return cls(provider="memory", container=container)
        if provider in {"disabled", "none", "off", ""}:
            return cls(provider="disabled")
        logger.warning("Unknown CLOUD_SYNC_PROVIDER '%s'; cloud sync disabled.", provider)
        return cls(provider="disabled")

    @property
    def is_enabled(self) -> bool:
        if self.provider == "disabled":
            return False
        if self.provider == "http" and not self.base_url:
            logger.warning("CLOUD_SYNC_BASE_URL must be set for the http record store; disabling sync.")
            return False
        return True


class BaseRecordStore:
    def account_status(self) -> str:
        raise NotImplementedError

    def query(self, record_type: str) -> List[RemoteRecord]:
        raise NotImplementedError

    def modify(self, save: Sequence[RemoteRecord] = (), delete: Sequence[str] = ()) -> List[RecordResult]:
        raise NotImplementedError


def _is_newer(stored: RemoteRecord, incoming: RemoteRecord) -> bool:
    stored_ts = _coerce_datetime(stored.fields.get(FieldNames.LAST_MODIFIED))
    incoming_ts = _coerce_datetime(incoming.fields.get(FieldNames.LAST_MODIFIED))
    return stored_ts is not None and (incoming_ts is None or stored_ts > incoming_ts)


class InMemoryRecordStore(BaseRecordStore):
    """Process-local record store, handy for tests and single-node setups."""

    def __init__(self, status: str = ACCOUNT_AVAILABLE) -> None:
        self.status = status
        self.records: Dict[str, RemoteRecord] = {}
        self._lock = threading.Lock()

    def account_status(self) -> str:
        return self.status

    def query(self, record_type: str) -> List[RemoteRecord]:
        with self._lock:
            return [
                copy.deepcopy(r)
                for r in self.records.values()
                if r.record_type == record_type and (r.fields.get(FieldNames.NAME) or "") != ""
            ]

    def modify(self, save: Sequence[RemoteRecord] = (), delete: Sequence[str] = ()) -> List[RecordResult]:
        results: List[RecordResult] = []
        with self._lock:
            for record in save:
                existing = self.records.get(record.record_id)
                if existing is not None and _is_newer(existing, record):
                    results.append(
                        RecordResult(
                            record_id=record.record_id,
                            error=CloudSyncError(CloudSyncError.SERVER_RECORD_CHANGED),
                        )
                    )
                    continue
                stored = copy.deepcopy(record)
                self.records[record.record_id] = stored
                results.append(RecordResult(record_id=record.record_id, record=copy.deepcopy(stored)))
            for record_id in delete:
                if self.records.pop(record_id, None) is None:
                    results.append(
                        RecordResult(record_id=record_id, error=CloudSyncError(CloudSyncError.RECORD_NOT_FOUND))
                    )
                else:
                    results.append(RecordResult(record_id=record_id))
        return results


_HTTP_ERROR_CODES = {
    400: CloudSyncError.INVALID_ARGUMENTS,
    401: CloudSyncError.NOT_AUTHENTICATED,
    403: CloudSyncError.NOT_AUTHENTICATED,
    404: CloudSyncError.BAD_CONTAINER,
    409: CloudSyncError.SERVER_RECORD_CHANGED,
    429: CloudSyncError.REQUEST_RATE_LIMITED,
    503: CloudSyncError.SERVICE_UNAVAILABLE,
}


def _item_error_code(code: Optional[str]) -> str:
    if not code:
        return CloudSyncError.SYNC_FAILED
    # servers may answer with camelCase codes such as "serverRecordChanged"
    return re.sub(r"(?<!^)(?=[A-Z])", "_", code).lower()


class HttpRecordStore(BaseRecordStore):
    """JSON record store API reached over HTTP."""

    def __init__(self, base_url: str, container: str, api_token: Optional[str] = None) -> None:
        self.base_url = base_url.rstrip('/')
        self.container = container
        self.api_token = api_token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/containers/{self.container}{path}"
        try:
            response = requests.request(method, url, headers=self._headers(), timeout=_DEFAULT_TIMEOUT, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise CloudSyncError(CloudSyncError.NETWORK_UNAVAILABLE, str(exc)) from exc
        if response.status_code >= 400:
            code = _HTTP_ERROR_CODES.get(response.status_code)
            if code is None:
                code = CloudSyncError.SERVER_REJECTED_REQUEST if response.status_code >= 500 else CloudSyncError.SYNC_FAILED
            raise CloudSyncError(code, f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise CloudSyncError(CloudSyncError.SYNC_FAILED, "invalid JSON from record store") from exc

    @staticmethod
    def _encode(record: RemoteRecord) -> Dict[str, Any]:
        fields = dict(record.fields)
        last_modified = fields.get(FieldNames.LAST_MODIFIED)
        if isinstance(last_modified, datetime):
            fields[FieldNames.LAST_MODIFIED] = last_modified.isoformat()
        return {"recordName": record.record_id, "recordType": record.record_type, "fields": fields}

    @staticmethod
    def _decode(payload: Dict[str, Any]) -> RemoteRecord:
        return RemoteRecord(
            record_id=str(payload.get("recordName")),
            fields=dict(payload.get("fields") or {}),
            record_type=payload.get("recordType") or RECORD_TYPE,
        )

    def account_status(self) -> str:
        payload = self._request("GET", "/account")
        return str(payload.get("status") or "could_not_determine")

    def query(self, record_type: str) -> List[RemoteRecord]:
        payload = self._request("GET", "/records", params={"recordType": record_type})
        return [self._decode(item) for item in payload.get("records") or [] if item.get("recordName")]

    def modify(self, save: Sequence[RemoteRecord] = (), delete: Sequence[str] = ()) -> List[RecordResult]:
        payload = self._request(
            "POST",
            "/records/modify",
            json={"save": [self._encode(r) for r in save], "delete": list(delete)},
        )
        results: List[RecordResult] = []
        for item in payload.get("results") or []:
            record_id = str(item.get("recordName"))
            if item.get("status", "ok") == "ok":
                record = self._decode(item["record"]) if item.get("record") else None
                results.append(RecordResult(record_id=record_id, record=record))
            else:
                results.append(
                    RecordResult(
                        record_id=record_id,
                        error=CloudSyncError(_item_error_code(item.get("errorCode")), item.get("message")),
                    )
                )
        return results


def resolve_conflict(local_modified: Optional[datetime], remote_modified: Optional[datetime]) -> str:
    local_ts = models.as_utc(local_modified) if local_modified else _DISTANT_PAST
    remote_ts = models.as_utc(remote_modified) if remote_modified else _DISTANT_PAST
    if local_ts > remote_ts:
        return USE_LOCAL
    return USE_REMOTE


def record_from_spot(spot: models.Spot) -> RemoteRecord:
    record_id = spot.cloud_record_id or str(uuid.uuid4()).upper()
    fields: Dict[str, Any] = {
        FieldNames.NAME: spot.name,
        FieldNames.ADDRESS: spot.address,
        FieldNames.LATITUDE: spot.latitude,
        FieldNames.LONGITUDE: spot.longitude,
        FieldNames.WIFI_RATING: spot.wifi_rating,
        FieldNames.NOISE_RATING: spot.noise_rating,
        FieldNames.OUTLETS: spot.outlets,
        # The spot's own timestamp keeps last-write-wins meaningful across devices
        FieldNames.LAST_MODIFIED: models.as_utc(spot.last_modified) if spot.last_modified else models.now_utc(),
        FieldNames.LOCAL_ID: str(spot.id),
    }
    for record_field, attribute in _TEXT_FIELDS.items():
        fields[record_field] = getattr(spot, attribute)
    return RemoteRecord(record_id=record_id, fields=fields)


def apply_remote_record(spot: models.Spot, record: RemoteRecord) -> bool:
    """Copy a newer remote record onto ``spot``; missing fields keep local values."""
    fields = record.fields
    remote_modified = _coerce_datetime(fields.get(FieldNames.LAST_MODIFIED))
    if resolve_conflict(spot.last_modified, remote_modified) == USE_LOCAL:
        return False

    name = str(fields.get(FieldNames.NAME) or "").strip()
    address = str(fields.get(FieldNames.ADDRESS) or "").strip()
    if name:
        spot.name = name
    if address:
        spot.address = address

    for record_field, attribute in ((FieldNames.LATITUDE, "latitude"), (FieldNames.LONGITUDE, "longitude")):
        value = fields.get(record_field)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            setattr(spot, attribute, float(value))

    wifi = fields.get(FieldNames.WIFI_RATING)
    if isinstance(wifi, int) and not isinstance(wifi, bool) and 1 <= wifi <= 5:
        spot.wifi_rating = wifi
    noise = fields.get(FieldNames.NOISE_RATING)
    if noise in NOISE_LEVELS:
        spot.noise_rating = noise
    outlets = fields.get(FieldNames.OUTLETS)
    if isinstance(outlets, bool):
        spot.outlets = outlets

    for record_field, attribute in _TEXT_FIELDS.items():
        value = fields.get(record_field)
        if value is not None:
            setattr(spot, attribute, value)

    if remote_modified is not None:
        spot.last_modified = remote_modified
    return True


def _remote_is_current(spot: models.Spot, remote: Dict[str, RemoteRecord]) -> bool:
    record = remote.get(spot.cloud_record_id) if spot.cloud_record_id else None
    if record is None:
        return False
    remote_modified = _coerce_datetime(record.fields.get(FieldNames.LAST_MODIFIED))
    return resolve_conflict(spot.last_modified, remote_modified) == USE_REMOTE


def spot_create_from_record(record: RemoteRecord) -> Optional[schemas.SpotCreate]:
    """Validated create payload, or ``None`` when required fields are missing."""
    fields = record.fields
    name = str(fields.get(FieldNames.NAME) or "").strip()
    address = str(fields.get(FieldNames.ADDRESS) or "").strip()
    if not name or not address:
        logger.warning(
            "Skipping remote record with missing required fields: name=%r, address=%r", name, address
        )
        return None
    values: Dict[str, Any] = {
        "name": name,
        "address": address,
        "latitude": fields.get(FieldNames.LATITUDE) or 0.0,
        "longitude": fields.get(FieldNames.LONGITUDE) or 0.0,
        "wifi_rating": fields.get(FieldNames.WIFI_RATING) or 1,
        "noise_rating": fields.get(FieldNames.NOISE_RATING) or "Low",
        "outlets": bool(fields.get(FieldNames.OUTLETS) or False),
    }
    for record_field, attribute in _TEXT_FIELDS.items():
        values[attribute] = fields.get(record_field)
    try:
        return schemas.SpotCreate(**values)
    except ValidationError as exc:
        logger.warning("Skipping invalid remote record %s: %s", record.record_id, exc)
        return None


class CloudSyncManager:
    """Coordinates uploads, downloads and merge of spot records."""

    def __init__(
        self,
        config: Optional[CloudSyncConfig] = None,
        *,
        store: Optional[BaseRecordStore] = None,
        session_factory: Callable[[], Session] = SessionLocal,
        sleep: Callable[[float], None] = time.sleep,
        upload_batch_delay: float = UPLOAD_BATCH_DELAY_SECONDS,
        delete_batch_delay: float = DELETE_BATCH_DELAY_SECONDS,
    ) -> None:
        self.config = config or CloudSyncConfig.from_env()
        self.store = store if store is not None else self._build_store()
        self._session_factory = session_factory
        self._sleep = sleep
        self.upload_batch_delay = upload_batch_delay
        self.delete_batch_delay = delete_batch_delay
        self._lock = threading.Lock()
        self._disabled_by_errors = False
        self.last_sync_at: Optional[datetime] = None
        self.sync_error: Optional[str] = None
        self.consecutive_errors = 0
        self.uploaded = 0
        self.created = 0
        self.updated = 0

    def _build_store(self) -> Optional[BaseRecordStore]:
        if not self.config.is_enabled:
            return None
        if self.config.provider == "http":
            return HttpRecordStore(
                base_url=self.config.base_url or "",
                container=self.config.container,
                api_token=self.config.api_token,
            )
        if self.config.provider == "memory":
            return InMemoryRecordStore()
        return None

    @property
    def is_syncing(self) -> bool:
        return self._lock.locked()

    @property
    def is_enabled(self) -> bool:
        return self.store is not None and not self._disabled_by_errors and feature_flags.cloud_sync_enabled()

    def enable(self) -> None:
        """Re-arm sync after it was disabled by repeated errors."""
        self._disabled_by_errors = False
        self.consecutive_errors = 0
        self.sync_error = None

    def status(self) -> schemas.SyncStatus:
        return schemas.SyncStatus(
            provider=self.config.provider,
            is_enabled=self.is_enabled,
            is_syncing=self.is_syncing,
            last_sync_at=self.last_sync_at,
            sync_error=self.sync_error,
            consecutive_errors=self.consecutive_errors,
            uploaded=self.uploaded,
            created=self.created,
            updated=self.updated,
        )

    @contextmanager
    def _session(self, db: Optional[Session]):
        if db is not None:
            yield db
            return
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def _require_account(self) -> None:
        status = self.store.account_status()
        logger.info("Cloud account status: %s", status)
        if status != ACCOUNT_AVAILABLE:
            raise CloudSyncError(CloudSyncError.ACCOUNT_NOT_AVAILABLE, status)

    def sync(self, db: Optional[Session] = None) -> schemas.SyncStatus:
        if not self.is_enabled or not self._lock.acquire(blocking=False):
            logger.info("Cloud sync skipped - already syncing or disabled")
            return self.status()
        try:
            logger.info("Starting cloud sync")
            self.sync_error = None
            self.uploaded = self.created = self.updated = 0
            try:
                self._require_account()
                with self._session(db) as session:
                    try:
                        remote = {r.record_id: r for r in self.store.query(RECORD_TYPE)}
                    except CloudSyncError as exc:
                        logger.warning("Cloud download failed: %s", exc)
                        self.sync_error = f"Cloud download failed: {exc.user_message}"
                        remote = None
                    self.upload_local_changes(session, remote)
                    if remote is not None:
                        self.download_remote_changes(session, list(remote.values()))
                self.last_sync_at = models.now_utc()
                self.consecutive_errors = 0
                logger.info(
                    "Cloud sync completed",
                    extra={
                        "records_uploaded": self.uploaded,
                        "records_created": self.created,
                        "records_updated": self.updated,
                    },
                )
            except CloudSyncError as exc:
                self._record_failure(exc)
        finally:
            self._lock.release()
        return self.status()

    def _record_failure(self, exc: CloudSyncError) -> None:
        self.consecutive_errors += 1
        self.sync_error = exc.user_message
        logger.error("Cloud sync error: %s", exc, extra={"code": exc.code})
        if self.consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
            self._disabled_by_errors = True
            self.sync_error = DISABLED_MESSAGE
            logger.error("Cloud sync disabled after %d consecutive errors", self.consecutive_errors)

    def upload_local_changes(self, db: Session, remote: Optional[Dict[str, RemoteRecord]] = None) -> int:
        """Upload spots whose linked record is missing or older than the local copy."""
        spots = [s for s in repo_spots.get_all_spots(db) if not _remote_is_current(s, remote or {})]
        batch_count = (len(spots) + UPLOAD_BATCH_SIZE - 1) // UPLOAD_BATCH_SIZE
        for batch_index in range(batch_count):
            batch = spots[batch_index * UPLOAD_BATCH_SIZE:(batch_index + 1) * UPLOAD_BATCH_SIZE]
            self._upload_batch(db, batch)
            if batch_index < batch_count - 1 and self.upload_batch_delay > 0:
                self._sleep(self.upload_batch_delay)
        return self.uploaded

    def _upload_batch(self, db: Session, batch: Sequence[models.Spot]) -> None:
        by_record_id: Dict[str, tuple] = {}
        for spot in batch:
            record = record_from_spot(spot)
            by_record_id[record.record_id] = (spot, record)
        try:
            results = self.store.modify(save=[record for _, record in by_record_id.values()])
        except CloudSyncError as exc:
            logger.warning("Error uploading batch: %s", exc, extra={"code": exc.code})
            if exc.code != CloudSyncError.NETWORK_UNAVAILABLE:
                self.sync_error = exc.user_message
            return

        for result in results:
            entry = by_record_id.get(result.record_id)
            if result.ok and entry is not None:
                spot = entry[0]
                spot.cloud_record_id = result.record_id
                self.uploaded += 1
            elif result.error is not None and result.error.code == CloudSyncError.SERVER_RECORD_CHANGED:
                logger.warning("Record already exists on server, skipping upload: %s", result.record_id)
            elif result.error is not None:
                logger.error("Error uploading record %s: %s", result.record_id, result.error)
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to store cloud record ids: %s", exc)

    def download_remote_changes(self, db: Session, records: Optional[Sequence[RemoteRecord]] = None) -> int:
        if records is None:
            records = self.store.query(RECORD_TYPE)
        logger.info("Cloud query returned %d records", len(records))
        for record in records:
            try:
                outcome = self.merge_record(db, record)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error("Error processing remote record %s: %s", record.record_id, exc)
                continue
            if outcome == "created":
                self.created += 1
            elif outcome in {"updated", "linked"}:
                self.updated += 1
        return len(records)

    def merge_record(self, db: Session, record: RemoteRecord) -> str:
        """Merge one remote record; returns created/updated/linked/unchanged/skipped."""
        spot = repo_spots.get_spot_by_cloud_record_id(db, record.record_id)
        if spot is not None:
            return "updated" if apply_remote_record(spot, record) else "unchanged"

        name = str(record.fields.get(FieldNames.NAME) or "")
        address = str(record.fields.get(FieldNames.ADDRESS) or "")
        spot = repo_spots.get_spot_by_name_and_address(db, name, address)
        if spot is not None:
            if spot.cloud_record_id is not None:
                logger.info("Spot %s is already linked to %s, ignoring %s", name, spot.cloud_record_id, record.record_id)
                return "skipped"
            spot.cloud_record_id = record.record_id
            apply_remote_record(spot, record)
            logger.info("Linked existing spot to cloud record: %s", name)
            return "linked"

        payload = spot_create_from_record(record)
        if payload is None:
            return "skipped"
        remote_modified = _coerce_datetime(record.fields.get(FieldNames.LAST_MODIFIED))
        repo_spots.create_spot(
            db,
            payload,
            last_modified=remote_modified,
            cloud_record_id=record.record_id,
            commit=False,
        )
        logger.info("Created new spot from cloud record: %s", payload.name)
        return "created"

    def clear_remote_records(self) -> int:
        """Delete every remote Spot record; returns how many were removed."""
        if self.store is None:
            return 0
        self._require_account()
        record_ids = [r.record_id for r in self.store.query(RECORD_TYPE)]
        logger.info("Found %d cloud records to delete", len(record_ids))
        deleted = 0
        for start in range(0, len(record_ids), DELETE_BATCH_SIZE):
            batch = record_ids[start:start + DELETE_BATCH_SIZE]
            results = self.store.modify(delete=batch)
            deleted += sum(1 for r in results if r.ok)
            if start + DELETE_BATCH_SIZE < len(record_ids) and self.delete_batch_delay > 0:
                self._sleep(self.delete_batch_delay)
        logger.info("Cleared cloud records", extra={"deleted": deleted})
        return deleted


_cloud_sync_manager: Optional[CloudSyncManager] = None


def get_cloud_sync_manager() -> CloudSyncManager:
    global _cloud_sync_manager
    if _cloud_sync_manager is None:
        _cloud_sync_manager = CloudSyncManager()
    return _cloud_sync_manager


def reset_cloud_sync_manager_for_tests() -> None:  # pragma: no cover - used in tests
    global _cloud_sync_manager
    _cloud_sync_manager = None
