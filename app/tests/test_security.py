from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from ..core import config
from ..core.security import (
    InvalidTokenError, create_access_token, decode_access_token,
    hash_password, verify_password,
)


def test_password_hash_round_trip():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_empty_or_malformed_hash():
    assert not verify_password("secret123", "")
    assert not verify_password("secret123", None)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_token_round_trip():
    token = create_access_token("user-1", "u@example.com", "admin")
    claims = decode_access_token(token)
    assert claims.user_id == "user-1"
    assert claims.email == "u@example.com"
    assert claims.role == "admin"
    assert claims.expires_at > datetime.now(timezone.utc)


def test_token_expires_after_24_hours():
    issued = datetime.now(timezone.utc) - timedelta(hours=25)
    token = create_access_token("user-1", "u@example.com", "user", now=issued)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode(
        {"user_id": "user-1", "role": "admin", "iss": config.JWT_ISSUER,
         "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
        "another-key",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_with_wrong_issuer_is_rejected():
    token = jwt.encode(
        {"user_id": "user-1", "role": "user", "iss": "someone-else",
         "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
        config.SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidTokenError):
        decode_access_token("not.a.token")
