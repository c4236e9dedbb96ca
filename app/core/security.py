from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from jose import JWTError, jwt
from passlib.context import CryptContext

from . import config

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when a token has a bad signature, is malformed or has expired."""
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    role: str
    expires_at: datetime


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt (salted, one-way).

    Args:
        password: Plain text password

    Returns:
        str: bcrypt hash
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a plain text password against a stored bcrypt hash.
    Malformed or empty hashes never verify.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(user_id: str, email: str, role: str, now: Optional[datetime] = None) -> str:
    """
    Issue a signed session token that embeds identity and role.

    Args:
        user_id: ID of the user
        email: Email of the user
        role: Role of the user (user/admin)
        now: Issue time, defaults to the current UTC time

    Returns:
        str: Signed JWT valid for ACCESS_TOKEN_EXPIRE_HOURS
    """
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + timedelta(hours=config.ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode = {
        "sub": user_id,
        "user_id": user_id,
        "email": email,
        "role": role,
        "iss": config.JWT_ISSUER,
        "iat": int(issued_at.timestamp()),
        "nbf": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """
    Validate a token and return its claims.

    Raises:
        InvalidTokenError: bad signature, malformed structure, missing claims or expiry
    """
    try:
        payload = jwt.decode(
            token,
            config.SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            issuer=config.JWT_ISSUER,
        )
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = payload.get("user_id")
    role = payload.get("role")
    exp = payload.get("exp")
    if not user_id or not role or exp is None:
        raise InvalidTokenError("invalid token")

    return TokenClaims(
        user_id=user_id,
        email=payload.get("email", ""),
        role=role,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )
