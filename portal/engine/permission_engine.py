"""Permission Engine - Role-based answers to "may this principal do X / open Y"

Pure functions of (principal, permission) or (principal, route). The
principal passed in is always the effective one: while an admin is
impersonating, the impersonated identity's role decides.
"""
from typing import Iterable, Optional

from ..config.settings import settings
from ..domain.enums import Permission, Role
from ..domain.models import Principal
from .permission_table import (
    ROLE_PERMISSIONS, ROUTE_PERMISSIONS, ROUTE_PREFIX_PERMISSIONS, PUBLIC_ROUTES,
    ROLE_DISPLAY_NAMES, ROLE_DESCRIPTIONS,
)


def role_of(principal: Optional[Principal]) -> Optional[Role]:
    """Resolve the principal's role, None for unknown roles"""
    if principal is None:
        return None
    try:
        return Role(principal.role)
    except ValueError:
        return None


def has_permission(principal: Optional[Principal], permission: Permission) -> bool:
    role = role_of(principal)
    if role is None:
        return False
    return Permission(permission) in ROLE_PERMISSIONS.get(role, frozenset())


def has_any_permission(principal: Optional[Principal], permissions: Iterable[Permission]) -> bool:
    if principal is None:
        return False
    return any(has_permission(principal, permission) for permission in permissions)


def has_all_permissions(principal: Optional[Principal], permissions: Iterable[Permission]) -> bool:
    if principal is None:
        return False
    return all(has_permission(principal, permission) for permission in permissions)


def session_has_permission(state, permission: Permission) -> bool:
    """has_permission against the effective principal of a SessionState"""
    return has_permission(state.principal, permission)


def _normalize_route(route: str) -> str:
    for separator in ("?", "#"):
        route = route.split(separator, 1)[0]
    return route or "/"


def can_access_route(
    principal: Optional[Principal],
    route: str,
    default_allow: Optional[bool] = None
) -> bool:
    """
    Check whether the principal may open a UI route.

    Exact entries win, then the longest known prefix. Routes matching
    neither are denied unless listed in PUBLIC_ROUTES, or unless
    default_allow (falling back to settings.route_default_allow) is set.
    """
    if principal is None:
        return False

    path = _normalize_route(route)
    required = ROUTE_PERMISSIONS.get(path)

    if required is None:
        for prefix, permissions in ROUTE_PREFIX_PERMISSIONS:
            if path.startswith(prefix):
                required = permissions
                break

    if required is None:
        if path in PUBLIC_ROUTES:
            return True
        if default_allow is None:
            default_allow = settings.route_default_allow
        return default_allow

    return has_any_permission(principal, required)


def get_role_display_name(role: str) -> str:
    return ROLE_DISPLAY_NAMES.get(role, role)


def get_role_description(role: str) -> str:
    return ROLE_DESCRIPTIONS.get(role, "No description available")
