import pytest

from ..admin.models import AdminSettings
from ..admin.moderation import (
    ENTITY_PORTFOLIO, ENTITY_USER, ensure_admin_settings, initial_status, status_for_new,
)


@pytest.mark.parametrize("user_flag, portfolio_flag, user_status, portfolio_status", [
    (False, False, "approved", "published"),
    (True, False, "pending", "published"),
    (False, True, "approved", "draft"),
    (True, True, "pending", "draft"),
])
def test_initial_status(user_flag, portfolio_flag, user_status, portfolio_status):
    settings = AdminSettings(user_approval_required=user_flag, portfolio_approval_required=portfolio_flag)
    assert initial_status(settings, ENTITY_USER) == user_status
    assert initial_status(settings, ENTITY_PORTFOLIO) == portfolio_status


def test_unknown_entity_kind():
    with pytest.raises(ValueError):
        initial_status(AdminSettings(), "comment")


def test_settings_singleton_is_created_once(db):
    first = ensure_admin_settings(db)
    second = ensure_admin_settings(db)
    assert first.id == second.id
    assert db.query(AdminSettings).count() == 1
    assert first.user_approval_required is False
    assert first.portfolio_approval_required is False


def test_status_for_new_reads_current_settings(db):
    settings = ensure_admin_settings(db)
    assert status_for_new(db, ENTITY_USER) == "approved"

    settings.user_approval_required = True
    db.commit()
    assert status_for_new(db, ENTITY_USER) == "pending"
