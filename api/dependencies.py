"""
API dependencies for dependency injection: database sessions, the current
user and role guards.
"""

import logging
from typing import Generator, Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.exceptions import ForbiddenError, UnauthorizedError
from app.security import decode_access_token
from domain.enums import UserRole
from domain.models import User, get_db_session
from repositories import UserRepository
from services.access_service import resolve_route_access

logger = logging.getLogger("fitmeal.api.auth")

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


def _load_user(db: Session, token: str) -> User:
    payload = decode_access_token(token)
    try:
        user_id = UUID(payload["sub"])
    except ValueError as exc:
        raise UnauthorizedError("Invalid token", code="INVALID_TOKEN") from exc

    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise UnauthorizedError("User no longer exists", code="USER_NOT_FOUND")
    if not user.is_active:
        raise UnauthorizedError("Account is disabled", code="ACCOUNT_DISABLED")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Authenticated, active user from the bearer token; 401 otherwise."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required", code="AUTH_REQUIRED")
    return _load_user(db, credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but None instead of 401 for anonymous callers."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _load_user(db, credentials.credentials)
    except UnauthorizedError as exc:
        logger.debug("optional_auth_ignored code=%s", exc.code)
        return None


def require_roles(*roles: UserRole):
    """Dependency factory: the current user must hold one of ``roles``."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        access = resolve_route_access(user, roles)
        if not access.allowed:
            raise ForbiddenError(
                "You do not have permission to access this resource",
                details={
                    "required_roles": [UserRole(r).value for r in roles],
                    "redirect_to": access.redirect_to,
                },
                code="FORBIDDEN_ROLE",
            )
        return user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_trainer = require_roles(UserRole.TRAINER)
require_customer = require_roles(UserRole.CUSTOMER)
require_staff = require_roles(UserRole.TRAINER, UserRole.ADMIN)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
