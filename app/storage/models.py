from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
import json
import uuid

from ..core.database import Base, utcnow


class MinIOConfig(Base):
    __tablename__ = "minio_configs"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    endpoint = Column(String(255), nullable=False)
    access_key = Column(String(100), nullable=False)
    secret_key = Column(String(255), nullable=False)
    bucket_name = Column(String(100), nullable=False)
    use_ssl = Column(Boolean, default=True)
    is_private = Column(Boolean, default=False)
    region = Column(String(50), default="us-east-1")
    url_expiry = Column(Integer, default=3600)
    is_active = Column(Boolean, default=False)
    description = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    files = relationship("FileObject", back_populates="config")


class FileObject(Base):
    __tablename__ = "file_objects"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    original_name = Column(String(255), nullable=False)
    storage_path = Column(String(500), nullable=False)
    content_type = Column(String(100))
    file_size = Column(BigInteger, nullable=False)
    md5_hash = Column(String(32))
    config_id = Column(Integer, ForeignKey("minio_configs.id"), nullable=False)
    is_public = Column(Boolean, default=False)
    tags = Column(String(500))  # JSON object
    metadata_json = Column("metadata", Text)
    uploaded_by = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, index=True)

    config = relationship("MinIOConfig", back_populates="files")

    @property
    def tag_map(self):
        if not self.tags:
            return {}
        try:
            return json.loads(self.tags)
        except ValueError:
            return {}
