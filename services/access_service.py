"""
Route access decisions shared by the API dependencies and the SPA route check.

Unauthenticated or disabled users are sent to the login page; users whose role
is not allowed are sent to the landing page of their own role.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from domain.enums import UserRole

LOGIN_ROUTE = "/login"

LANDING_ROUTES = {
    UserRole.ADMIN: "/admin",
    UserRole.TRAINER: "/trainer",
    UserRole.CUSTOMER: "/customer",
}


@dataclass(frozen=True)
class RouteAccess:
    allowed: bool
    redirect_to: Optional[str] = None


def landing_route_for(role: Optional[UserRole]) -> str:
    if role is None:
        return LOGIN_ROUTE
    return LANDING_ROUTES.get(UserRole(role), LOGIN_ROUTE)


def resolve_route_access(user, allowed_roles: Iterable[UserRole]) -> RouteAccess:
    """Decide whether ``user`` may enter a route guarded by ``allowed_roles``.

    An empty ``allowed_roles`` means any authenticated user.
    """
    if user is None or not getattr(user, "is_active", False):
        return RouteAccess(allowed=False, redirect_to=LOGIN_ROUTE)

    allowed = {UserRole(role) for role in allowed_roles}
    if not allowed or UserRole(user.role) in allowed:
        return RouteAccess(allowed=True)
    return RouteAccess(allowed=False, redirect_to=landing_route_for(user.role))
