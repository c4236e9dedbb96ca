from sqlalchemy import Column, Integer, Boolean, DateTime

from ..core.database import Base, utcnow


class AdminSettings(Base):
    """Singleton row holding the moderation policy."""
    __tablename__ = "admin_settings"
    id = Column(Integer, primary_key=True, index=True)
    user_approval_required = Column(Boolean, default=False, nullable=False)
    portfolio_approval_required = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
