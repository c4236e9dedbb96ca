"""
Moderation gate: decides the status a new user or portfolio starts with.

The policy is applied once, when the entity is created. Changing the settings
later never touches existing rows.
"""
from sqlalchemy.orm import Session
import logging

from .models import AdminSettings

logger = logging.getLogger(__name__)

ENTITY_USER = "user"
ENTITY_PORTFOLIO = "portfolio"


def initial_status(settings: AdminSettings, kind: str) -> str:
    """
    Args:
        settings: The AdminSettings singleton
        kind: "user" or "portfolio"

    Returns:
        str: "approved"/"pending" for users, "published"/"draft" for portfolios
    """
    if kind == ENTITY_USER:
        return "pending" if settings.user_approval_required else "approved"
    if kind == ENTITY_PORTFOLIO:
        return "draft" if settings.portfolio_approval_required else "published"
    raise ValueError(f"Unknown entity kind: {kind}")


def ensure_admin_settings(db: Session) -> AdminSettings:
    """Return the settings singleton, creating it with auto-approve defaults when missing."""
    settings = db.query(AdminSettings).order_by(AdminSettings.id.asc()).first()
    if settings:
        return settings

    settings = AdminSettings(user_approval_required=False, portfolio_approval_required=False)
    try:
        db.add(settings)
        db.commit()
        db.refresh(settings)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating admin settings: {str(e)}")
        raise
    logger.info("Admin settings initialized with auto-approve defaults")
    return settings


def status_for_new(db: Session, kind: str) -> str:
    return initial_status(ensure_admin_settings(db), kind)
