from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from . import crud
from .gateway import StorageGateway, get_storage_gateway
from .models import FileObject
from .schemas import FileSearchFilter, MinIOConfigRequest
from ..auth.authentication import Principal, get_current_principal, require_admin
from ..core.database import get_db
from ..core.errors import ForbiddenError
from ..core.pagination import page_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])
admin_router = APIRouter(prefix="/admin/minio", tags=["Admin Storage"])


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    is_public: bool = Form(False),
    category: Optional[str] = Form(None),
    purpose: Optional[str] = Form(None),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    tags = {}
    if category:
        tags["category"] = category
    if purpose:
        tags["purpose"] = purpose

    file_object = storage.upload_file(db, file, principal.user_id, is_public=is_public, tags=tags)
    return {"message": "File uploaded successfully", "file": crud.file_response(file_object)}


@router.get("/{object_id}/url")
def get_file_url(
    object_id: str,
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    return {"url": storage.get_file_url(db, object_id)}


@router.delete("/{object_id}")
def delete_file(
    object_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    file_object = db.query(FileObject).filter(FileObject.id == object_id).first()
    if file_object is not None and not principal.can_modify(file_object.uploaded_by):
        raise ForbiddenError("Permission denied")
    storage.delete_file(db, object_id)
    return {"message": "File deleted successfully"}


@router.get("")
def list_files(
    user_id: Optional[str] = None,
    content_type: Optional[str] = None,
    is_public: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    filters = FileSearchFilter(user_id=user_id, content_type=content_type, is_public=is_public)
    items, total = crud.list_files(db, storage, filters, page, page_size)
    return page_response(items, total, page, page_size)


# ---------------------------------------------------------------------------
# Admin: storage configurations
# ---------------------------------------------------------------------------

@admin_router.get("/configs")
def list_configs(
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"data": [crud.mask_config(row) for row in crud.list_configs(db)]}


@admin_router.post("/configs", status_code=status.HTTP_201_CREATED)
def create_config(
    data: MinIOConfigRequest,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    row = crud.create_config(db, storage, data)
    return {"message": "MinIO config created successfully", "config": crud.mask_config(row)}


@admin_router.get("/configs/{config_id}")
def get_config(
    config_id: int,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"config": crud.mask_config(crud.get_config_or_404(db, config_id))}


@admin_router.put("/configs/{config_id}")
def update_config(
    config_id: int,
    data: MinIOConfigRequest,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    row = crud.update_config(db, storage, config_id, data)
    return {"message": "Config updated successfully", "config": crud.mask_config(row)}


@admin_router.delete("/configs/{config_id}")
def delete_config(
    config_id: int,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    crud.delete_config(db, config_id)
    return {"message": "Config deleted successfully"}


@admin_router.post("/configs/{config_id}/activate")
def activate_config(
    config_id: int,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    row = storage.set_active_config(db, config_id)
    logger.info(f"MinIO config {config_id} activated by {admin.user_id}")
    return {"message": "Config activated successfully", "config": crud.mask_config(row)}


@admin_router.post("/configs/{config_id}/test")
def test_config_connection(
    config_id: int,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    crud.check_config_connection(db, storage, config_id)
    return {"message": "Connection test successful"}


@admin_router.post("/test")
def test_connection(
    data: MinIOConfigRequest,
    admin: Principal = Depends(require_admin),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    crud.check_request_connection(storage, data)
    return {"message": "Connection test successful"}
