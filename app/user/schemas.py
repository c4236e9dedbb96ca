from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime

from ..core.schemas import CamelModel


class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=20)
    nickname: Optional[str] = Field(None, max_length=50)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    id: str
    email: str
    username: str
    nickname: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    role: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    user: UserResponse
    token: str


class UpdateUserRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=20)
    nickname: Optional[str] = Field(None, max_length=50)
    avatar: Optional[str] = None
    bio: Optional[str] = None


class AdminUserRequest(BaseModel):
    status: Literal["approved", "rejected", "banned"]
    role: Optional[Literal["user", "admin"]] = None


class UserSearchFilter(BaseModel):
    status: Optional[str] = None
    role: Optional[str] = None
    search: Optional[str] = None
