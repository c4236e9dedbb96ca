from sqlalchemy.orm import Session
from typing import List, Tuple
import logging

from .gateway import StorageGateway, StorageSettings
from .models import FileObject, MinIOConfig
from .schemas import FileObjectResponse, FileSearchFilter, MinIOConfigRequest, MinIOConfigResponse
from ..core import config
from ..core.errors import AppError, BadRequestError, ConflictError, InvalidOperationError, NotFoundError
from ..core.pagination import paginate

logger = logging.getLogger(__name__)


def mask_config(row: MinIOConfig) -> MinIOConfigResponse:
    """Serialize a config with the secret key replaced by the mask."""
    response = MinIOConfigResponse.model_validate(row)
    response.secret_key = config.SECRET_MASK
    return response


def _settings_from_request(data: MinIOConfigRequest, secret_key: str, config_id: int = 0) -> StorageSettings:
    return StorageSettings(
        id=config_id,
        name=data.name,
        endpoint=data.endpoint,
        access_key=data.access_key,
        secret_key=secret_key,
        bucket_name=data.bucket_name,
        use_ssl=data.use_ssl,
        is_private=data.is_private,
        region=data.region,
        url_expiry=data.url_expiry,
    )


def _is_masked(secret_key) -> bool:
    return not secret_key or secret_key == config.SECRET_MASK


def list_configs(db: Session) -> List[MinIOConfig]:
    return db.query(MinIOConfig).order_by(MinIOConfig.id).all()


def get_config_or_404(db: Session, config_id: int) -> MinIOConfig:
    row = db.query(MinIOConfig).filter(MinIOConfig.id == config_id).first()
    if row is None:
        raise NotFoundError("Config not found")
    return row


def _deactivate_others(db: Session, keep_id: int = None):
    query = db.query(MinIOConfig).filter(MinIOConfig.is_active.is_(True))
    if keep_id is not None:
        query = query.filter(MinIOConfig.id != keep_id)
    query.update({MinIOConfig.is_active: False}, synchronize_session="fetch")


def create_config(db: Session, gateway: StorageGateway, data: MinIOConfigRequest) -> MinIOConfig:
    """
    Store a new storage config after a successful connection test. An active
    config takes over from the previous one and becomes the gateway's client.
    """
    if _is_masked(data.secret_key):
        raise BadRequestError("secret_key is required")
    if db.query(MinIOConfig).filter(MinIOConfig.name == data.name).first():
        raise ConflictError("Config name already exists")

    gateway.test_connection(_settings_from_request(data, data.secret_key))

    row = MinIOConfig(**data.model_dump())
    try:
        if data.is_active:
            _deactivate_others(db)
        db.add(row)
        db.commit()
        db.refresh(row)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating MinIO config: {str(e)}")
        raise
    logger.info(f"MinIO config {row.id} ({row.name}) created")

    if row.is_active:
        gateway.initialize_client(StorageSettings.from_model(row))
    return row


def update_config(db: Session, gateway: StorageGateway, config_id: int, data: MinIOConfigRequest) -> MinIOConfig:
    """Replace a config. An empty or masked secret keeps the stored one."""
    row = get_config_or_404(db, config_id)
    secret_key = row.secret_key if _is_masked(data.secret_key) else data.secret_key

    clash = db.query(MinIOConfig).filter(MinIOConfig.name == data.name, MinIOConfig.id != config_id).first()
    if clash:
        raise ConflictError("Config name already exists")

    gateway.test_connection(_settings_from_request(data, secret_key, config_id))

    for field, value in data.model_dump(exclude={"secret_key"}).items():
        setattr(row, field, value)
    row.secret_key = secret_key
    try:
        if data.is_active:
            _deactivate_others(db, keep_id=config_id)
        db.commit()
        db.refresh(row)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating MinIO config {config_id}: {str(e)}")
        raise
    logger.info(f"MinIO config {config_id} updated")

    if row.is_active:
        gateway.initialize_client(StorageSettings.from_model(row))
    return row


def delete_config(db: Session, config_id: int) -> None:
    row = get_config_or_404(db, config_id)
    if row.is_active:
        raise InvalidOperationError("Cannot delete the active config")
    file_count = db.query(FileObject).filter(FileObject.config_id == config_id).count()
    if file_count > 0:
        raise InvalidOperationError("Cannot delete config with associated files")
    try:
        db.delete(row)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting MinIO config {config_id}: {str(e)}")
        raise
    logger.info(f"MinIO config {config_id} deleted")


def check_config_connection(db: Session, gateway: StorageGateway, config_id: int) -> None:
    row = get_config_or_404(db, config_id)
    gateway.test_connection(StorageSettings.from_model(row))


def file_response(file_object: FileObject, url: str = None) -> FileObjectResponse:
    return FileObjectResponse(
        id=file_object.id,
        original_name=file_object.original_name,
        storage_path=file_object.storage_path,
        content_type=file_object.content_type,
        file_size=file_object.file_size,
        md5_hash=file_object.md5_hash,
        config_id=file_object.config_id,
        is_public=bool(file_object.is_public),
        tags=file_object.tag_map,
        uploaded_by=file_object.uploaded_by,
        created_at=file_object.created_at,
        updated_at=file_object.updated_at,
        url=url,
    )


def list_files(db: Session, gateway: StorageGateway, filters: FileSearchFilter,
               page: int, page_size: int) -> Tuple[List[FileObjectResponse], int]:
    """
    Live files, newest first. Each item carries a URL when the gateway can
    resolve one.
    """
    query = db.query(FileObject).filter(FileObject.deleted_at.is_(None))
    if filters.user_id:
        query = query.filter(FileObject.uploaded_by == filters.user_id)
    if filters.content_type:
        query = query.filter(FileObject.content_type.like(f"%{filters.content_type}%"))
    if filters.is_public is not None:
        query = query.filter(FileObject.is_public == filters.is_public)
    query = query.order_by(FileObject.created_at.desc())
    items, total = paginate(query, page, page_size)

    responses = []
    for item in items:
        url = None
        if gateway.is_initialized:
            try:
                url = gateway.get_file_url(db, item.id)
            except AppError as e:
                logger.debug(f"No URL for file {item.id}: {e.detail}")
        responses.append(file_response(item, url))
    return responses, total


def check_request_connection(gateway: StorageGateway, data: MinIOConfigRequest) -> None:
    """Connection test for settings that are not stored yet."""
    if _is_masked(data.secret_key):
        raise BadRequestError("secret_key is required")
    gateway.test_connection(_settings_from_request(data, data.secret_key))
