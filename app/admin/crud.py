from sqlalchemy.orm import Session
import logging

from .models import AdminSettings
from .moderation import ensure_admin_settings
from .schemas import AdminSettingsRequest

logger = logging.getLogger(__name__)


def get_settings(db: Session) -> AdminSettings:
    return ensure_admin_settings(db)


def update_settings(db: Session, data: AdminSettingsRequest) -> AdminSettings:
    """
    Update the moderation flags. Fields left out of the request keep their
    value; existing users and portfolios are not re-evaluated.

    Args:
        db: database session
        data: flags to change

    Returns:
        AdminSettings: the updated singleton
    """
    settings = ensure_admin_settings(db)
    if data.user_approval_required is not None:
        settings.user_approval_required = data.user_approval_required
    if data.portfolio_approval_required is not None:
        settings.portfolio_approval_required = data.portfolio_approval_required

    try:
        db.commit()
        db.refresh(settings)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating admin settings: {str(e)}")
        raise
    logger.info(
        f"Admin settings updated: user_approval_required={settings.user_approval_required}, "
        f"portfolio_approval_required={settings.portfolio_approval_required}"
    )
    return settings
