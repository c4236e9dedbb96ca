from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
import json
import logging
import uuid

from ..core.database import Base, utcnow

logger = logging.getLogger(__name__)


class Portfolio(Base):
    __tablename__ = "portfolios"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), index=True)
    title = Column(String(255), nullable=False)
    author = Column(String(100), nullable=False)
    description = Column(Text)
    content = Column(Text)
    category = Column(String(50), nullable=False, index=True)
    tags = Column(Text)  # JSON array
    image_object_id = Column(String(36))
    ai_level = Column(String(50))
    likes = Column(Integer, default=0)
    views = Column(Integer, default=0)
    status = Column(String(20), default="draft")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", primaryjoin="foreign(Portfolio.user_id) == User.id", viewonly=True)
    versions = relationship(
        "PortfolioVersion",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        order_by="PortfolioVersion.sequence",
    )

    @property
    def tag_list(self):
        if not self.tags:
            return []
        try:
            return json.loads(self.tags)
        except ValueError:
            logger.warning(f"Failed to parse tags for portfolio {self.id}")
            return []

    @tag_list.setter
    def tag_list(self, value):
        self.tags = json.dumps(list(value or []), ensure_ascii=False)

    @property
    def active_version(self):
        for version in self.versions:
            if version.is_active:
                return version
        return None


class PortfolioVersion(Base):
    __tablename__ = "portfolio_versions"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    portfolio_id = Column(String(36), ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    html_content = Column(Text, nullable=False)
    thumbnail = Column(Text)
    change_log = Column(Text)
    is_active = Column(Boolean, default=False, nullable=False)
    sequence = Column(Integer, default=0, nullable=False)  # creation order within the portfolio
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    portfolio = relationship("Portfolio", back_populates="versions")

    __table_args__ = (
        Index("idx_portfolio_versions_sequence", "portfolio_id", "sequence"),
    )
