from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple
import hashlib
import json
import logging
import os
import threading
import uuid

import urllib3
from fastapi import Request, UploadFile
from minio import Minio
from sqlalchemy.orm import Session

from .models import FileObject, MinIOConfig
from ..core import config
from ..core.database import utcnow
from ..core.errors import BadRequestError, InternalError, NotFoundError, NotInitializedError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StorageSettings:
    """Connection settings copied out of a MinIOConfig row."""
    id: int
    name: str
    endpoint: str
    access_key: str
    secret_key: str
    bucket_name: str
    use_ssl: bool = True
    is_private: bool = False
    region: str = "us-east-1"
    url_expiry: int = 3600

    @classmethod
    def from_model(cls, row: MinIOConfig) -> "StorageSettings":
        return cls(
            id=row.id,
            name=row.name,
            endpoint=row.endpoint,
            access_key=row.access_key,
            secret_key=row.secret_key,
            bucket_name=row.bucket_name,
            use_ssl=bool(row.use_ssl),
            is_private=bool(row.is_private),
            region=row.region or "us-east-1",
            url_expiry=row.url_expiry or 3600,
        )


@dataclass(frozen=True)
class ActiveStorage:
    client: Any
    settings: StorageSettings


ClientFactory = Callable[[StorageSettings, urllib3.Timeout], Any]


def create_minio_client(settings: StorageSettings, timeout: urllib3.Timeout) -> Minio:
    """Build a MinIO client with bounded timeouts and no retries."""
    http_client = urllib3.PoolManager(timeout=timeout, retries=False)
    return Minio(
        endpoint=settings.endpoint,
        access_key=settings.access_key,
        secret_key=settings.secret_key,
        secure=settings.use_ssl,
        region=settings.region,
        http_client=http_client,
    )


def _probe_timeout() -> urllib3.Timeout:
    return urllib3.Timeout(connect=config.MINIO_CONNECT_TIMEOUT, read=config.MINIO_CONNECT_TIMEOUT)


def _transfer_timeout() -> urllib3.Timeout:
    return urllib3.Timeout(connect=config.MINIO_CONNECT_TIMEOUT, read=config.MINIO_UPLOAD_TIMEOUT)


def _md5_and_size(stream) -> Tuple[str, int]:
    hasher = hashlib.md5()
    size = 0
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
        hasher.update(chunk)
        size += len(chunk)
    stream.seek(0)
    return hasher.hexdigest(), size


class StorageGateway:
    """
    Process-wide handle on the active object storage.

    The client and the settings it was built from are replaced together as one
    ActiveStorage value under a lock; every operation works on the snapshot it
    read at the start.
    """

    def __init__(self, client_factory: ClientFactory = create_minio_client):
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._active: Optional[ActiveStorage] = None

    # -- state -------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._active is not None

    def get_active_config(self) -> Optional[StorageSettings]:
        active = self._active
        return active.settings if active else None

    def _snapshot(self) -> ActiveStorage:
        active = self._active
        if active is None:
            raise NotInitializedError()
        return active

    def _check_bucket(self, settings: StorageSettings, create: bool) -> None:
        probe = self._client_factory(settings, _probe_timeout())
        exists = probe.bucket_exists(bucket_name=settings.bucket_name)
        if not exists and create:
            probe.make_bucket(bucket_name=settings.bucket_name, location=settings.region)
            logger.info(f"Created bucket: {settings.bucket_name}")

    def initialize_client(self, settings: StorageSettings) -> None:
        """
        Connect to the configured endpoint, create the bucket when missing and
        make it the active storage. The previous client stays active on failure.

        Raises:
            InternalError: the endpoint or bucket could not be reached
        """
        try:
            self._check_bucket(settings, create=True)
            client = self._client_factory(settings, _transfer_timeout())
        except Exception as e:
            logger.error(f"Failed to initialize MinIO client for config {settings.name}: {str(e)}")
            raise InternalError(f"failed to initialize minio client: {str(e)}")

        with self._lock:
            self._active = ActiveStorage(client=client, settings=settings)
        logger.info(f"MinIO client initialized. Endpoint: {settings.endpoint}, Bucket: {settings.bucket_name}")

    def test_connection(self, settings: StorageSettings) -> None:
        """Check the endpoint and bucket without touching the active client."""
        try:
            self._check_bucket(settings, create=False)
        except Exception as e:
            logger.warning(f"Connection test failed for {settings.endpoint}: {str(e)}")
            raise BadRequestError(f"connection test failed: {str(e)}")

    def set_active_config(self, db: Session, config_id: int) -> MinIOConfig:
        """
        Make one config row the only active one, then switch the client to it.

        The row stays active when the client cannot be initialized; the error
        is raised to the caller.
        """
        try:
            db.query(MinIOConfig).filter(MinIOConfig.is_active.is_(True)).update(
                {MinIOConfig.is_active: False}, synchronize_session="fetch"
            )
            row = db.query(MinIOConfig).filter(MinIOConfig.id == config_id).first()
            if row is None:
                db.rollback()
                raise NotFoundError("config not found")
            row.is_active = True
            db.commit()
            db.refresh(row)
        except NotFoundError:
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Error activating MinIO config {config_id}: {str(e)}")
            raise

        try:
            self.initialize_client(StorageSettings.from_model(row))
        except InternalError:
            logger.error(f"MinIO config {config_id} is marked active but its client could not be initialized")
            raise
        return row

    def load_active_config(self, db: Session) -> bool:
        """Initialize from the active row at startup. Failures are logged, not raised."""
        row = db.query(MinIOConfig).filter(MinIOConfig.is_active.is_(True)).first()
        if row is None:
            logger.info("No active MinIO configuration found")
            return False
        try:
            self.initialize_client(StorageSettings.from_model(row))
        except InternalError as e:
            logger.warning(f"Active MinIO configuration could not be loaded: {e.detail}")
            return False
        return True

    # -- objects -----------------------------------------------------------

    def _remove_object(self, active: ActiveStorage, object_name: str) -> None:
        try:
            active.client.remove_object(bucket_name=active.settings.bucket_name, object_name=object_name)
        except Exception as e:
            logger.warning(f"Failed to delete object {object_name} from MinIO: {str(e)}")

    def upload_file(self, db: Session, upload: UploadFile, uploader_id: str,
                    is_public: bool = False, tags: Optional[Dict[str, str]] = None) -> FileObject:
        """
        Store an uploaded file under a fresh object id and record it.

        Args:
            db: database session
            upload: multipart file
            uploader_id: id of the authenticated uploader
            is_public: served through a static URL when the bucket is public
            tags: free-form tags stored with the record

        Returns:
            FileObject: the stored record
        """
        active = self._snapshot()
        settings = active.settings

        object_id = str(uuid.uuid4())
        original_name = upload.filename or object_id
        object_name = object_id + os.path.splitext(original_name)[1]
        content_type = upload.content_type or "application/octet-stream"
        md5_hash, size = _md5_and_size(upload.file)

        try:
            active.client.put_object(
                bucket_name=settings.bucket_name,
                object_name=object_name,
                data=upload.file,
                length=size,
                content_type=content_type,
            )
        except Exception as e:
            logger.error(f"Failed to upload {original_name} to MinIO: {str(e)}")
            raise InternalError(f"failed to upload file to minio: {str(e)}")

        file_object = FileObject(
            id=object_id,
            original_name=original_name,
            storage_path=object_name,
            content_type=content_type,
            file_size=size,
            md5_hash=md5_hash,
            config_id=settings.id,
            is_public=is_public,
            tags=json.dumps(tags or {}, ensure_ascii=False),
            metadata_json=json.dumps({"uploaded-by": uploader_id, "original-name": original_name}, ensure_ascii=False),
            uploaded_by=uploader_id,
        )
        try:
            db.add(file_object)
            db.commit()
            db.refresh(file_object)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to save file record {object_id}: {str(e)}")
            self._remove_object(active, object_name)
            raise InternalError("failed to save file record")

        logger.info(f"File uploaded. ObjectID: {object_id}, OriginalName: {original_name}")
        return file_object

    def _get_file_record(self, db: Session, object_id: str) -> FileObject:
        file_object = db.query(FileObject).filter(
            FileObject.id == object_id, FileObject.deleted_at.is_(None)
        ).first()
        if file_object is None:
            raise NotFoundError("file not found")
        return file_object

    def url_for(self, active: ActiveStorage, file_object: FileObject) -> str:
        settings = active.settings
        if file_object.is_public and not settings.is_private:
            protocol = "https" if settings.use_ssl else "http"
            return f"{protocol}://{settings.endpoint}/{settings.bucket_name}/{file_object.storage_path}"
        try:
            return active.client.presigned_get_object(
                bucket_name=settings.bucket_name,
                object_name=file_object.storage_path,
                expires=timedelta(seconds=settings.url_expiry),
            )
        except Exception as e:
            logger.error(f"Failed to presign URL for {file_object.id}: {str(e)}")
            raise InternalError(f"failed to generate presigned URL: {str(e)}")

    def get_file_url(self, db: Session, object_id: str) -> str:
        """Static URL for public files in a public bucket, otherwise a fresh presigned URL."""
        active = self._snapshot()
        return self.url_for(active, self._get_file_record(db, object_id))

    def delete_file(self, db: Session, object_id: str) -> None:
        active = self._snapshot()
        file_object = self._get_file_record(db, object_id)

        self._remove_object(active, file_object.storage_path)

        file_object.deleted_at = utcnow()
        try:
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to delete file record {object_id}: {str(e)}")
            raise
        logger.info(f"File deleted. ObjectID: {object_id}")


def get_storage_gateway(request: Request) -> StorageGateway:
    return request.app.state.storage
