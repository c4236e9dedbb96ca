from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from .crud import get_settings, update_settings
from .schemas import AdminSettingsRequest, AdminSettingsResponse
from ..auth.authentication import Principal, require_admin
from ..core.database import get_db
from ..core.pagination import page_response
from ..portfolio import crud as portfolio_crud
from ..portfolio.routes import render_portfolio
from ..portfolio.schemas import AdminPortfolioRequest, PortfolioQuery
from ..storage.gateway import StorageGateway, get_storage_gateway
from ..user import crud as user_crud
from ..user.schemas import AdminUserRequest, UserResponse, UserSearchFilter

router = APIRouter(prefix="/admin", tags=["Admin"])

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users")
async def list_users(
    status: Optional[str] = None,
    role: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    filters = UserSearchFilter(status=status, role=role, search=search)
    users, total = user_crud.search_users(db, filters, page, page_size)
    return page_response([UserResponse.model_validate(u) for u in users], total, page, page_size)


@router.put("/users/{user_id}/status")
async def update_user_status(
    user_id: str,
    data: AdminUserRequest,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = user_crud.update_user_status(db, user_id, data.status, data.role)
    return {"message": "User status updated successfully", "data": UserResponse.model_validate(user)}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user_crud.delete_user(db, user_id, admin.user_id)
    return {"message": "User deleted successfully"}


@router.post("/users/{user_id}/reset-password")
async def reset_user_password(
    user_id: str,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    new_password = user_crud.reset_password(db, user_id)
    return {"message": "Password reset successfully", "new_password": new_password}


# ---------------------------------------------------------------------------
# Portfolios
# ---------------------------------------------------------------------------

@router.get("/portfolios")
async def list_portfolios(
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    filters = PortfolioQuery(status=status, category=category, search=search)
    items, total = portfolio_crud.list_all_portfolios(db, filters, page, page_size)
    data = [render_portfolio(db, storage, item, include_versions=False) for item in items]
    return page_response(data, total, page, page_size)


@router.put("/portfolios/{portfolio_id}/status")
async def update_portfolio_status(
    portfolio_id: str,
    data: AdminPortfolioRequest,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    portfolio = portfolio_crud.update_portfolio_status(db, portfolio_id, data.status)
    return {"message": "Portfolio status updated successfully", "data": render_portfolio(db, storage, portfolio)}


@router.delete("/portfolios/{portfolio_id}")
async def delete_portfolio(
    portfolio_id: str,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    portfolio_crud.hard_delete_portfolio(db, portfolio_id)
    return {"message": "Portfolio deleted successfully"}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@router.get("/settings")
async def get_admin_settings(
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"data": AdminSettingsResponse.model_validate(get_settings(db))}


@router.put("/settings")
async def update_admin_settings(
    data: AdminSettingsRequest,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    settings = update_settings(db, data)
    return {"message": "Admin settings updated successfully", "data": AdminSettingsResponse.model_validate(settings)}
