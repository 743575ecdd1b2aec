"""Authentication service - registration, login, token refresh and logout."""

import logging
import math
import time
from datetime import timedelta
from typing import Optional

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    ServiceValidationError,
    TooManyRequestsError,
    UnauthorizedError,
)
from app.security import (
    TOKEN_TYPE,
    create_access_token,
    generate_refresh_token,
    hash_password,
    hash_token,
    validate_password_strength,
    verify_password,
)
from domain.enums import UserRole
from domain.models import User, UserSession
from domain.models.database import utcnow
from repositories import SessionRepository, UserRepository
from services.activity_service import ActivityService

logger = logging.getLogger("fitmeal.auth")


class LoginAttemptTracker:
    """
    Moving window of failed logins per email, kept in process memory.

    After ``max_attempts`` failures inside ``lockout_minutes`` the key is locked
    until the oldest failure falls out of the window.
    """

    def __init__(self, max_attempts: int, lockout_minutes: int):
        self.limit = parse(f"{max_attempts}/{lockout_minutes} minutes")
        self._storage = MemoryStorage()
        self._limiter = MovingWindowRateLimiter(self._storage)

    def retry_after(self, key: str) -> int:
        """Seconds until the key unlocks, 0 when not locked"""
        if self._limiter.test(self.limit, "login", key):
            return 0
        stats = self._limiter.get_window_stats(self.limit, "login", key)
        return max(1, math.ceil(stats.reset_time - time.time()))

    def check(self, key: str) -> None:
        wait = self.retry_after(key)
        if wait:
            raise TooManyRequestsError(
                "Too many failed login attempts. Try again later.",
                details={"retry_after_seconds": wait},
                code="TOO_MANY_ATTEMPTS",
            )

    def record_failure(self, key: str) -> int:
        self._limiter.hit(self.limit, "login", key)
        stats = self._limiter.get_window_stats(self.limit, "login", key)
        return self.limit.amount - stats.remaining

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._storage.reset()
        else:
            self._limiter.clear(self.limit, "login", key)


login_attempts = LoginAttemptTracker(
    max_attempts=settings.max_login_attempts,
    lockout_minutes=settings.login_lockout_minutes,
)


class AuthService:
    @staticmethod
    def issue_tokens(db: Session, user: User, user_agent: Optional[str] = None) -> dict:
        """Create a refresh session and an access token for the user (flush only)."""
        refresh_token = generate_refresh_token()
        SessionRepository(db).add(
            UserSession(
                user_id=user.id,
                token_hash=hash_token(refresh_token),
                user_agent=(user_agent or "")[:500] or None,
                expires_at=utcnow() + timedelta(days=settings.refresh_token_expire_days),
            )
        )
        return {
            "access_token": create_access_token(user.id, UserRole(user.role).value),
            "refresh_token": refresh_token,
            "token_type": TOKEN_TYPE,
            "expires_in": settings.access_token_expire_minutes * 60,
            "user": user,
        }

    @staticmethod
    def ensure_password_policy(password: str) -> None:
        problems = validate_password_strength(password)
        if problems:
            raise ServiceValidationError(
                "Password does not meet requirements",
                details={"problems": problems},
            )

    @staticmethod
    def register(
        db: Session,
        email: str,
        password: str,
        role: UserRole,
        name: Optional[str] = None,
        acting_user: Optional[User] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> dict:
        """
        Register a new account and sign it in.

        Raises:
            ForbiddenError: admin registration without an active admin caller
            ServiceValidationError: password policy violation
            ConflictError: email already registered
        """
        role = UserRole(role)
        if role == UserRole.ADMIN:
            if acting_user is None:
                raise ForbiddenError(
                    "Admin accounts can only be created by an admin",
                    code="ADMIN_AUTH_REQUIRED",
                )
            if acting_user.role != UserRole.ADMIN or not acting_user.is_active:
                raise ForbiddenError(
                    "Only admins can create admin accounts", code="ADMIN_ONLY"
                )

        AuthService.ensure_password_policy(password)

        user_repo = UserRepository(db)
        email = email.strip().lower()
        if user_repo.get_by_email(email):
            raise ConflictError("User with this email already exists", code="USER_EXISTS")

        user = user_repo.add(
            User(
                email=email,
                password_hash=hash_password(password),
                role=role,
                name=name,
                is_active=True,
            )
        )
        tokens = AuthService.issue_tokens(db, user, user_agent)
        ActivityService.record(
            db,
            acting_user.id if acting_user else user.id,
            "auth.register",
            "user",
            user.id,
            {"role": role.value},
            ip_address,
        )
        db.commit()
        db.refresh(user)
        logger.info("user_registered user_id=%s role=%s", user.id, role.value)
        return tokens

    @staticmethod
    def login(
        db: Session,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        tracker: Optional[LoginAttemptTracker] = None,
    ) -> dict:
        tracker = tracker or login_attempts
        key = email.strip().lower()
        tracker.check(key)

        user = UserRepository(db).get_by_email(key)
        if not user or not verify_password(password, user.password_hash):
            attempts = tracker.record_failure(key)
            logger.warning("login_failed email=%s attempts=%d", key, attempts)
            raise UnauthorizedError("Invalid email or password", code="INVALID_CREDENTIALS")

        if not user.is_active:
            raise ForbiddenError("Account is disabled", code="ACCOUNT_DISABLED")

        tracker.reset(key)
        tokens = AuthService.issue_tokens(db, user, user_agent)
        ActivityService.record(db, user.id, "auth.login", "user", user.id, None, ip_address)
        db.commit()
        db.refresh(user)
        logger.info("user_logged_in user_id=%s", user.id)
        return tokens

    @staticmethod
    def refresh(db: Session, refresh_token: str, user_agent: Optional[str] = None) -> dict:
        """Rotate a refresh token: revoke the presented session and open a new one."""
        session_repo = SessionRepository(db)
        session = session_repo.get_by_token_hash(hash_token(refresh_token))
        now = utcnow()
        if session is None or session.revoked_at is not None:
            raise UnauthorizedError("Invalid refresh token", code="INVALID_REFRESH_TOKEN")
        if session.expires_at <= now:
            raise UnauthorizedError("Refresh token expired", code="REFRESH_TOKEN_EXPIRED")

        user = session.user
        if user is None or not user.is_active:
            raise UnauthorizedError("Account is not active", code="ACCOUNT_DISABLED")

        session.revoked_at = now
        tokens = AuthService.issue_tokens(db, user, user_agent or session.user_agent)
        db.commit()
        db.refresh(user)
        logger.info("refresh_token_rotated user_id=%s", user.id)
        return tokens

    @staticmethod
    def logout(db: Session, refresh_token: str, ip_address: Optional[str] = None) -> bool:
        """Revoke the session behind a refresh token. Unknown tokens are ignored."""
        session = SessionRepository(db).get_by_token_hash(hash_token(refresh_token))
        if session is None or session.revoked_at is not None:
            return False
        session.revoked_at = utcnow()
        ActivityService.record(
            db, session.user_id, "auth.logout", "user", session.user_id, None, ip_address
        )
        db.commit()
        logger.info("user_logged_out user_id=%s", session.user_id)
        return True
