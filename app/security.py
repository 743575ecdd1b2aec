"""
Password hashing, password policy and token helpers.
"""

import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from app.config import settings
from app.exceptions import UnauthorizedError

TOKEN_TYPE = "bearer"
ACCESS_TOKEN_SUBJECT_TYPE = "access"

MIN_PASSWORD_LENGTH = 8

_PASSWORD_RULES = [
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character"),
]


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def validate_password_strength(password: str) -> List[str]:
    """Return the list of policy violations for a candidate password (empty when valid)."""
    problems = []
    if len(password or "") < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password or ""):
            problems.append(message)
    return problems


def create_access_token(
    user_id: UUID,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": ACCESS_TOKEN_SUBJECT_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        UnauthorizedError: token is expired, malformed, or not an access token
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired", code="TOKEN_EXPIRED") from exc
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid token", code="INVALID_TOKEN") from exc

    if payload.get("type") != ACCESS_TOKEN_SUBJECT_TYPE or not payload.get("sub"):
        raise UnauthorizedError("Invalid token", code="INVALID_TOKEN")
    return payload


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Refresh tokens are stored as SHA-256 digests only."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
