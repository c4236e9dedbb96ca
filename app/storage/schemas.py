from pydantic import BaseModel, Field
from typing import Optional, Dict
from datetime import datetime


class MinIOConfigRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    endpoint: str = Field(..., min_length=1)
    access_key: str = Field(..., min_length=1)
    secret_key: Optional[str] = None
    bucket_name: str = Field(..., min_length=3, max_length=63)
    use_ssl: bool = True
    is_private: bool = False
    region: str = "us-east-1"
    url_expiry: int = Field(3600, ge=1, le=604800)
    is_active: bool = False
    description: Optional[str] = Field(None, max_length=500)


class MinIOConfigResponse(BaseModel):
    id: int
    name: str
    endpoint: str
    access_key: str
    secret_key: str
    bucket_name: str
    use_ssl: bool
    is_private: bool
    region: Optional[str] = None
    url_expiry: int
    is_active: bool
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FileObjectResponse(BaseModel):
    id: str
    original_name: str
    storage_path: str
    content_type: Optional[str] = None
    file_size: int
    md5_hash: Optional[str] = None
    config_id: int
    is_public: bool
    tags: Dict[str, str] = {}
    uploaded_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    url: Optional[str] = None

    class Config:
        from_attributes = True


class FileSearchFilter(BaseModel):
    user_id: Optional[str] = None
    content_type: Optional[str] = None
    is_public: Optional[bool] = None
