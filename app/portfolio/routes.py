from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from . import crud
from .models import Portfolio
from .schemas import (
    CreatePortfolioRequest, UpdatePortfolioRequest, CreateVersionRequest,
    UpdateVersionRequest, PortfolioQuery,
)
from ..auth.authentication import (
    Principal, get_current_principal, get_current_user, get_optional_principal,
)
from ..core.database import get_db
from ..core.errors import AppError
from ..core.pagination import page_response
from ..storage.gateway import StorageGateway, get_storage_gateway
from ..user.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolios", tags=["Portfolios"])
categories_router = APIRouter(tags=["Portfolios"])


def resolve_image_url(db: Session, storage: StorageGateway, portfolio: Portfolio) -> Optional[str]:
    """Cover image URL through the storage gateway, or None when it cannot be resolved."""
    if not portfolio.image_object_id or not storage.is_initialized:
        return None
    try:
        return storage.get_file_url(db, portfolio.image_object_id)
    except AppError as e:
        logger.debug(f"Cover image of portfolio {portfolio.id} not resolved: {e.detail}")
        return None


def render_portfolio(db: Session, storage: StorageGateway, portfolio: Portfolio, include_versions: bool = True):
    return crud.portfolio_to_response(portfolio, resolve_image_url(db, storage, portfolio), include_versions)


@categories_router.get("/categories")
async def get_categories():
    return {"data": crud.CATEGORIES}


@router.get("")
async def list_portfolios(
    category: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    sort_by: str = "created_at",
    order: str = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_optional_principal),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    filters = PortfolioQuery(
        category=category, search=search, status=status,
        user_id=user_id, sort_by=sort_by, order=order,
    )
    items, total = crud.list_portfolios(db, principal, filters, page, page_size)
    data = [render_portfolio(db, storage, item, include_versions=False) for item in items]
    return page_response(data, total, page, page_size)


@router.get("/{portfolio_id}")
async def get_portfolio(
    portfolio_id: str,
    principal: Principal = Depends(get_optional_principal),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    portfolio = crud.get_portfolio_for_read(db, principal, portfolio_id)
    return {"data": render_portfolio(db, storage, portfolio)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    data: CreatePortfolioRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    portfolio = crud.create_portfolio(db, current_user, data)
    return {"message": "Portfolio created successfully", "data": render_portfolio(db, storage, portfolio)}


@router.put("/{portfolio_id}")
async def update_portfolio(
    portfolio_id: str,
    data: UpdatePortfolioRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    portfolio = crud.update_portfolio(db, principal, portfolio_id, data)
    return {"message": "Portfolio updated successfully", "data": render_portfolio(db, storage, portfolio)}


@router.delete("/{portfolio_id}")
async def delete_portfolio(
    portfolio_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    crud.soft_delete_portfolio(db, principal, portfolio_id)
    return {"message": "Portfolio deleted successfully"}


@router.post("/{portfolio_id}/like")
async def like_portfolio(portfolio_id: str, db: Session = Depends(get_db)):
    likes = crud.like_portfolio(db, portfolio_id)
    return {"message": "Portfolio liked successfully", "likes": likes}


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

@router.get("/{portfolio_id}/versions")
async def list_versions(
    portfolio_id: str,
    principal: Principal = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    crud.get_visible_portfolio(db, principal, portfolio_id)
    versions = crud.list_versions(db, portfolio_id)
    return {"data": [crud.version_to_response(v) for v in versions]}


@router.post("/{portfolio_id}/versions", status_code=status.HTTP_201_CREATED)
async def create_version(
    portfolio_id: str,
    data: CreateVersionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    portfolio = crud.get_owned_portfolio(db, principal, portfolio_id)
    version = crud.create_version(db, portfolio, data)
    return {"message": "Version created successfully", "data": crud.version_to_response(version)}


@router.get("/{portfolio_id}/versions/{version_id}")
async def get_version(
    portfolio_id: str,
    version_id: str,
    principal: Principal = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    crud.get_visible_portfolio(db, principal, portfolio_id)
    version = crud.get_version_or_404(db, portfolio_id, version_id)
    return {"data": crud.version_to_response(version)}


@router.put("/{portfolio_id}/versions/{version_id}")
async def update_version(
    portfolio_id: str,
    version_id: str,
    data: UpdateVersionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    crud.get_owned_portfolio(db, principal, portfolio_id)
    version = crud.get_version_or_404(db, portfolio_id, version_id)
    version = crud.update_version(db, version, data)
    return {"message": "Version updated successfully", "data": crud.version_to_response(version)}


@router.delete("/{portfolio_id}/versions/{version_id}")
async def delete_version(
    portfolio_id: str,
    version_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    crud.get_owned_portfolio(db, principal, portfolio_id)
    version = crud.get_version_or_404(db, portfolio_id, version_id)
    crud.delete_version(db, version)
    return {"message": "Version deleted successfully"}


@router.post("/{portfolio_id}/versions/{version_id}/activate")
async def activate_version(
    portfolio_id: str,
    version_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    crud.get_owned_portfolio(db, principal, portfolio_id)
    version = crud.set_active_version(db, portfolio_id, version_id)
    return {"message": "Version activated successfully", "data": crud.version_to_response(version)}
