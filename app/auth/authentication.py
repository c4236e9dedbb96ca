from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from ..core.security import InvalidTokenError, decode_access_token
from ..user.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """
    Identity attached to one request: anonymous, or an authenticated user
    with the id, email and role taken from the token claims.
    """
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == "admin"

    def can_modify(self, owner_id: Optional[str]) -> bool:
        """Only the owner or an admin may mutate an owned resource."""
        return self.is_admin or (self.is_authenticated and owner_id == self.user_id)


def extract_token(request: Request) -> str:
    """
    Read the bearer token from the Authorization header, falling back to the
    `token` query parameter. A well-formed header wins over the query parameter.
    """
    parts = request.headers.get("Authorization", "").split(" ")
    if len(parts) == 2 and parts[1]:
        return parts[1]
    return request.query_params.get("token", "")


def _principal_from_token(token: str) -> Principal:
    claims = decode_access_token(token)
    return Principal(user_id=claims.user_id, email=claims.email, role=claims.role)


async def get_current_principal(request: Request) -> Principal:
    """
    Required authentication: a missing or invalid token rejects the request
    before the handler runs.
    """
    token = extract_token(request)
    if not token:
        raise UnauthorizedError("Authorization token required")
    try:
        return _principal_from_token(token)
    except InvalidTokenError:
        raise UnauthorizedError("Invalid token")


async def get_optional_principal(request: Request) -> Principal:
    """Optional authentication: a bad or missing token just means anonymous."""
    token = extract_token(request)
    if not token:
        return Principal.anonymous()
    try:
        return _principal_from_token(token)
    except InvalidTokenError:
        logger.debug("Ignoring invalid token on optionally authenticated request")
        return Principal.anonymous()


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        logger.warning(f"User {principal.user_id} with role {principal.role} tried to access an admin endpoint")
        raise ForbiddenError("Admin access required")
    return principal


async def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> User:
    """Load the User row behind the authenticated principal."""
    user = db.query(User).filter(User.id == principal.user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user
