from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from .crud import update_profile
from .models import User
from .schemas import UpdateUserRequest, UserResponse
from ..auth.authentication import get_current_user
from ..core.database import get_db
from ..core.pagination import page_response
from ..portfolio.crud import list_user_portfolios
from ..portfolio.routes import render_portfolio
from ..portfolio.schemas import PortfolioQuery
from ..storage.gateway import StorageGateway, get_storage_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return {"data": UserResponse.model_validate(current_user)}


@router.put("/me")
async def update_user_info(
    data: UpdateUserRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Update the caller's own profile. Role and status cannot be changed here.
    """
    user = update_profile(db, current_user, data)
    logger.info(f"Profile updated: {user.id}")
    return {"message": "User information updated successfully", "data": UserResponse.model_validate(user)}


@router.get("/me/portfolios")
async def get_my_portfolios(
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    order: str = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    filters = PortfolioQuery(status=status, category=category, search=search, sort_by=sort_by, order=order)
    items, total = list_user_portfolios(db, current_user.id, filters, page, page_size)
    data = [render_portfolio(db, storage, item, include_versions=False) for item in items]
    return page_response(data, total, page, page_size)
