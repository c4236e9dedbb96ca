from typing import Optional
from datetime import datetime

from ..core.schemas import CamelModel


class AdminSettingsRequest(CamelModel):
    user_approval_required: Optional[bool] = None
    portfolio_approval_required: Optional[bool] = None


class AdminSettingsResponse(CamelModel):
    id: int
    user_approval_required: bool
    portfolio_approval_required: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
