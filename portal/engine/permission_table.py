"""Permission Table - Static role -> permission-set mapping"""
from typing import Dict, FrozenSet, List, Tuple

from ..domain.enums import Permission, Role

P = Permission

_ADMIN_PERMISSIONS: FrozenSet[Permission] = frozenset(Permission)

ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.ADMIN: _ADMIN_PERMISSIONS,
    # Must stay identical to ADMIN
    Role.PORTAL_ADMIN: _ADMIN_PERMISSIONS,
    Role.MEMBER: frozenset({
        P.VIEW_DASHBOARD,
        P.VIEW_REQUESTS,
        P.CREATE_REQUESTS,
        P.EDIT_REQUESTS,
        P.VIEW_CLIENTS,
        P.VIEW_TEAM,
        P.VIEW_INVOICES,
        P.CHAT_REQUESTS,
        P.ASSIGN_REQUESTS,
    }),
    Role.VIEWER: frozenset({
        P.VIEW_DASHBOARD,
        P.VIEW_REQUESTS,
        P.VIEW_CLIENTS,
        P.VIEW_TEAM,
        P.VIEW_INVOICES,
    }),
    Role.CLIENT: frozenset({
        P.VIEW_DASHBOARD,
        P.VIEW_REQUESTS,
        P.CREATE_REQUESTS,
        P.CHAT_REQUESTS,
    }),
}

# Exact-match route table
ROUTE_PERMISSIONS: Dict[str, List[Permission]] = {
    "/": [P.VIEW_DASHBOARD],
    "/requests": [P.VIEW_REQUESTS],
    "/requests/new": [P.CREATE_REQUESTS],
    "/clients": [P.VIEW_CLIENTS],
    "/clients/new": [P.CREATE_CLIENTS],
    "/team": [P.VIEW_TEAM],
    "/team/new": [P.CREATE_TEAM],
    "/invoices": [P.VIEW_INVOICES],
    "/invoices/new": [P.CREATE_INVOICES],
    "/reports": [P.VIEW_REPORTS],
    "/settings": [P.ADMIN_SETTINGS],
}

# Prefix fallbacks, checked longest first
ROUTE_PREFIX_PERMISSIONS: Tuple[Tuple[str, List[Permission]], ...] = tuple(sorted(
    (
        ("/invoices/", [P.VIEW_INVOICES]),
        ("/requests/", [P.VIEW_REQUESTS]),
        ("/clients/", [P.VIEW_CLIENTS]),
        ("/team/", [P.VIEW_TEAM]),
        ("/reports/", [P.VIEW_REPORTS]),
        ("/settings/", [P.ADMIN_SETTINGS]),
    ),
    key=lambda item: len(item[0]),
    reverse=True,
))

# Reachable by any authenticated principal when unmatched routes are denied
PUBLIC_ROUTES: FrozenSet[str] = frozenset({
    "/login",
    "/register",
    "/forgot-password",
    "/reset-password",
    "/verify-email",
    "/profile",
})

ROLE_DISPLAY_NAMES: Dict[str, str] = {
    Role.ADMIN.value: "Admin",
    Role.PORTAL_ADMIN.value: "Portal Admin",
    Role.MEMBER.value: "Regular Member",
    Role.VIEWER.value: "Viewer",
    Role.CLIENT.value: "Client",
}

ROLE_DESCRIPTIONS: Dict[str, str] = {
    Role.ADMIN.value: "Full system access with all permissions",
    Role.PORTAL_ADMIN.value: "Full portal access with admin privileges",
    Role.MEMBER.value: "Can view, edit, and chat on assigned items",
    Role.VIEWER.value: "Read-only access to assigned items",
    Role.CLIENT.value: "Client portal access for requests and communication",
}
