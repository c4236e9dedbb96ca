from pydantic import Field
from typing import Optional, List, Literal
from datetime import datetime

from ..core.schemas import CamelModel
from ..user.schemas import UserResponse


class InitialVersionRequest(CamelModel):
    name: Optional[str] = Field(None, max_length=20)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    html_content: str
    change_log: Optional[str] = None
    is_active: bool = False


class CreatePortfolioRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=50)
    tags: List[str] = []
    image_object_id: Optional[str] = None
    ai_level: str = Field(..., min_length=1)
    versions: List[InitialVersionRequest] = []


class UpdatePortfolioRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    image_object_id: Optional[str] = None
    ai_level: Optional[str] = None
    status: Optional[Literal["draft", "published", "rejected", "deleted"]] = None


class AdminPortfolioRequest(CamelModel):
    status: Literal["published", "rejected"]


class CreateVersionRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    html_content: str
    change_log: Optional[str] = None
    is_active: bool = False


class UpdateVersionRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    html_content: Optional[str] = None
    change_log: Optional[str] = None
    is_active: Optional[bool] = None


class PortfolioVersionResponse(CamelModel):
    id: str
    portfolio_id: str
    version: str
    title: str
    description: Optional[str] = None
    html_content: str
    thumbnail: Optional[str] = None
    is_active: bool
    change_log: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PortfolioResponse(CamelModel):
    id: str
    user_id: Optional[str] = None
    title: str
    author: str
    author_initial: str
    description: Optional[str] = None
    content: Optional[str] = None
    category: str
    tags: List[str]
    image: str
    image_object_id: Optional[str] = None
    image_url: Optional[str] = None
    ai_level: Optional[str] = None
    likes: int
    views: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserResponse] = None
    versions: Optional[List[PortfolioVersionResponse]] = None
    active_version: Optional[PortfolioVersionResponse] = None
    thumbnail: Optional[str] = None


class PortfolioQuery(CamelModel):
    category: Optional[str] = None
    search: Optional[str] = None
    status: Optional[str] = None
    user_id: Optional[str] = None
    sort_by: str = "created_at"
    order: str = "desc"
