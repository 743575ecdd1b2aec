"""Authentication routes: register, login, token refresh, logout and route checks"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
import logging
from typing import Optional

from api.dependencies import client_ip, get_current_user, get_db, get_optional_user
from api.responses import MessageResponse
from domain.enums import UserRole
from domain.models import User
from domain.schemas.auth_schemas import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RouteAccessResponse,
    TokenResponse,
    UserResponse,
)
from app.exceptions import ServiceValidationError
from services.access_service import resolve_route_access
from services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("fitmeal.api.auth")


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    acting_user: Optional[User] = Depends(get_optional_user),
):
    """
    Create an account and sign it in.

    Admin accounts can only be created by a signed-in admin.
    """
    return AuthService.register(
        db,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        name=payload.name,
        acting_user=acting_user,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    return AuthService.login(
        db,
        payload.email,
        payload.password,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh(payload: RefreshRequest, request: Request, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair; the old refresh token stops working."""
    return AuthService.refresh(db, payload.refresh_token, request.headers.get("user-agent"))


@router.post("/logout", response_model=MessageResponse)
def logout(payload: RefreshRequest, request: Request, db: Session = Depends(get_db)):
    AuthService.logout(db, payload.refresh_token, client_ip(request))
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.get("/route-access", response_model=RouteAccessResponse)
def route_access(
    roles: Optional[str] = Query(
        default=None, description="Comma separated roles allowed on the route"
    ),
    user: Optional[User] = Depends(get_optional_user),
):
    """
    Tell an SPA client whether the caller may open a route guarded by ``roles``,
    and where to redirect when not. No roles means any signed-in user.
    """
    try:
        required = [UserRole(r.strip().lower()) for r in (roles or "").split(",") if r.strip()]
    except ValueError as exc:
        raise ServiceValidationError(
            "Unknown role", details={"allowed": [r.value for r in UserRole]}
        ) from exc

    access = resolve_route_access(user, required)
    return RouteAccessResponse(
        allowed=access.allowed,
        redirect_to=access.redirect_to,
        required_roles=required,
        role=user.role if user else None,
    )
