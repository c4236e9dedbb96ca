from sqlalchemy import Column, String, Text, DateTime
import uuid

from ..core.database import Base, utcnow


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False)
    username = Column(String(100), unique=True, nullable=False)
    nickname = Column(String(100))
    password = Column(String(255), nullable=False)
    avatar = Column(String(500))
    bio = Column(Text)
    role = Column(String(20), default="user")
    status = Column(String(20), default="pending")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def display_name(self) -> str:
        return self.nickname or self.username
