from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional, List, Tuple
import logging

from .models import User
from .schemas import RegisterRequest, UpdateUserRequest, UserSearchFilter
from ..admin.moderation import ENTITY_USER, status_for_new
from ..core import config
from ..core.errors import ConflictError, ForbiddenError, NotFoundError
from ..core.pagination import paginate
from ..core.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_user_or_404(db: Session, user_id: str) -> User:
    db_user = get_user(db, user_id)
    if not db_user:
        raise NotFoundError("User not found")
    return db_user


def create_user(db: Session, data: RegisterRequest) -> User:
    """
    Register a new user.

    The initial status comes from the moderation gate, the nickname defaults
    to the username and the password is stored as a bcrypt hash.

    Raises:
        ConflictError: email or username already taken
    """
    if get_user_by_email(db, data.email):
        raise ConflictError("Email already exists")
    if get_user_by_username(db, data.username):
        raise ConflictError("Username already exists")

    db_user = User(
        email=data.email,
        username=data.username,
        nickname=data.nickname or data.username,
        password=hash_password(data.password),
        role="user",
        status=status_for_new(db, ENTITY_USER),
    )
    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email or username already exists")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise
    logger.info(f"User registered: {db_user.username} (status={db_user.status})")
    return db_user


LOGIN_STATUS_MESSAGES = {
    "pending": "Account is pending approval",
    "rejected": "Account has been rejected",
    "banned": "Account has been banned",
}


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Check the credentials. Returns None on a wrong email or password.

    Raises:
        ForbiddenError: credentials are valid but the account is not approved
    """
    db_user = get_user_by_email(db, email)
    if not db_user or not verify_password(password, db_user.password):
        return None
    if db_user.status != "approved":
        raise ForbiddenError(LOGIN_STATUS_MESSAGES.get(db_user.status, "Account is not active"))
    return db_user


def update_profile(db: Session, db_user: User, data: UpdateUserRequest) -> User:
    """Self-service profile update (username, nickname, avatar, bio)."""
    if data.username and data.username != db_user.username:
        taken = db.query(User).filter(User.username == data.username, User.id != db_user.id).first()
        if taken:
            raise ConflictError("Username already exists")
        db_user.username = data.username

    if data.nickname:
        db_user.nickname = data.nickname
    if data.avatar:
        db_user.avatar = data.avatar
    if data.bio:
        db_user.bio = data.bio

    try:
        db.commit()
        db.refresh(db_user)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user {db_user.id}: {str(e)}")
        raise
    return db_user


def search_users(db: Session, filters: UserSearchFilter, page: int, page_size: int) -> Tuple[List[User], int]:
    query = db.query(User)
    if filters.status:
        query = query.filter(User.status == filters.status)
    if filters.role:
        query = query.filter(User.role == filters.role)
    if filters.search:
        term = f"%{filters.search}%"
        query = query.filter(or_(User.username.like(term), User.email.like(term)))
    query = query.order_by(User.created_at.desc())
    return paginate(query, page, page_size)


def update_user_status(db: Session, user_id: str, status: str, role: Optional[str] = None) -> User:
    db_user = get_user_or_404(db, user_id)
    db_user.status = status
    if role:
        db_user.role = role
    try:
        db.commit()
        db.refresh(db_user)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating status of user {user_id}: {str(e)}")
        raise
    logger.info(f"User {user_id} status set to {status}" + (f", role {role}" if role else ""))
    return db_user


def delete_user(db: Session, user_id: str, acting_user_id: str) -> None:
    """
    Admin hard delete. Every portfolio the user owns is soft-deleted in the
    same transaction before the user row is removed.
    """
    from ..portfolio.models import Portfolio

    if user_id == acting_user_id:
        raise ForbiddenError("Cannot delete your own account")

    db_user = get_user_or_404(db, user_id)
    try:
        db.query(Portfolio).filter(Portfolio.user_id == user_id).update(
            {"status": "deleted"}, synchronize_session=False
        )
        db.delete(db_user)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        raise
    logger.info(f"User {user_id} deleted by {acting_user_id}")


def reset_password(db: Session, user_id: str) -> str:
    """Reset a user's password to the configured reset password and return it."""
    db_user = get_user_or_404(db, user_id)
    db_user.password = hash_password(config.RESET_PASSWORD)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error resetting password of user {user_id}: {str(e)}")
        raise
    logger.info(f"Password reset for user {user_id}")
    return config.RESET_PASSWORD


def ensure_admin_user(db: Session) -> Optional[User]:
    """Create the bootstrap admin account when the users table is empty."""
    if db.query(User).count() > 0:
        return None
    admin = User(
        email=config.ADMIN_EMAIL,
        username=config.ADMIN_USERNAME,
        nickname=config.ADMIN_USERNAME,
        password=hash_password(config.ADMIN_PASSWORD),
        role="admin",
        status="approved",
        bio="System Administrator",
    )
    try:
        db.add(admin)
        db.commit()
        db.refresh(admin)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create admin user: {str(e)}")
        raise
    logger.info(f"Bootstrap admin account created: {admin.email}")
    return admin
