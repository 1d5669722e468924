"""Permission table and engine"""

import pytest

from portal.domain.enums import Permission, Role
from portal.domain.models import AdminPrincipal, ClientPrincipal, TeamMemberPrincipal
from portal.engine.permission_engine import (
    can_access_route, get_role_description, get_role_display_name,
    has_all_permissions, has_any_permission, has_permission, session_has_permission,
)
from portal.engine.permission_table import ROLE_PERMISSIONS
from portal.session.state import SessionState

P = Permission

EXPECTED = {
    Role.MEMBER: {
        P.VIEW_DASHBOARD, P.VIEW_REQUESTS, P.CREATE_REQUESTS, P.EDIT_REQUESTS, P.VIEW_CLIENTS,
        P.VIEW_TEAM, P.VIEW_INVOICES, P.CHAT_REQUESTS, P.ASSIGN_REQUESTS,
    },
    Role.VIEWER: {P.VIEW_DASHBOARD, P.VIEW_REQUESTS, P.VIEW_CLIENTS, P.VIEW_TEAM, P.VIEW_INVOICES},
    Role.CLIENT: {P.VIEW_DASHBOARD, P.VIEW_REQUESTS, P.CREATE_REQUESTS, P.CHAT_REQUESTS},
    Role.ADMIN: set(Permission),
    Role.PORTAL_ADMIN: set(Permission),
}


def principal_with_role(role: Role):
    if role == Role.ADMIN:
        return AdminPrincipal(id="u1", email="u1@x.test", name="U1")
    if role == Role.CLIENT:
        return ClientPrincipal(id="u1", email="u1@x.test", name="U1", client_record_id="c1", client_name="U1")
    return TeamMemberPrincipal(id="u1", email="u1@x.test", name="U1", role=role)


def test_permission_set_has_22_members():
    assert len(Permission) == 22


@pytest.mark.parametrize("role", list(Role))
def test_has_permission_matches_table_exactly(role):
    principal = principal_with_role(role)
    for permission in Permission:
        assert has_permission(principal, permission) == (permission in EXPECTED[role]), permission


def test_portal_admin_identical_to_admin():
    assert ROLE_PERMISSIONS[Role.PORTAL_ADMIN] == ROLE_PERMISSIONS[Role.ADMIN]


def test_team_member_with_admin_role_gets_admin_rights():
    principal = TeamMemberPrincipal(id="t1", email="t@x.test", name="T", role=Role.ADMIN)
    assert has_permission(principal, P.IMPERSONATE_USERS)


def test_null_principal_has_nothing():
    assert has_permission(None, P.VIEW_DASHBOARD) is False
    assert has_any_permission(None, []) is False
    assert has_all_permissions(None, []) is False


def test_empty_lists():
    principal = principal_with_role(Role.VIEWER)
    assert has_any_permission(principal, []) is False
    assert has_all_permissions(principal, []) is True


def test_combinators():
    viewer = principal_with_role(Role.VIEWER)
    assert has_any_permission(viewer, [P.EDIT_REQUESTS, P.VIEW_REQUESTS])
    assert not has_all_permissions(viewer, [P.EDIT_REQUESTS, P.VIEW_REQUESTS])


def test_session_has_permission_uses_effective_principal(admin, client_principal):
    impersonated = client_principal.model_copy(update={"impersonated": True})
    state = SessionState(
        principal=impersonated,
        is_authenticated=True,
        impersonating=True,
        original_principal=admin,
    )
    assert session_has_permission(state, P.CHAT_REQUESTS)
    assert not session_has_permission(state, P.ADMIN_SETTINGS)
    assert not session_has_permission(SessionState(), P.VIEW_DASHBOARD)


class TestRoutes:

    def test_null_principal_denied(self):
        assert can_access_route(None, "/") is False

    def test_exact_routes(self, client_principal, viewer):
        assert can_access_route(client_principal, "/requests/new")
        assert not can_access_route(client_principal, "/invoices")
        assert can_access_route(viewer, "/invoices")
        assert not can_access_route(viewer, "/settings")

    def test_prefix_routes(self, client_principal, member):
        assert can_access_route(client_principal, "/requests/r7")
        assert not can_access_route(client_principal, "/clients/c1/edit")
        assert can_access_route(member, "/clients/c1")
        assert not can_access_route(member, "/settings/users")

    @pytest.mark.parametrize("route", ["/reports/requests", "/reports/timesheets", "/reports/avg-response-time"])
    def test_report_pages(self, admin, client_principal, route):
        assert can_access_route(admin, route, default_allow=False)
        assert not can_access_route(client_principal, route, default_allow=False)

    def test_query_string_ignored(self, client_principal):
        assert can_access_route(client_principal, "/requests?status=submitted")

    def test_unmatched_route_denied_by_default(self, admin):
        assert can_access_route(admin, "/some/new/page", default_allow=False) is False

    def test_unmatched_route_allowed_when_configured(self, viewer):
        assert can_access_route(viewer, "/some/new/page", default_allow=True) is True

    def test_public_routes_always_open(self, viewer):
        assert can_access_route(viewer, "/profile", default_allow=False)
        assert can_access_route(viewer, "/login", default_allow=False)


def test_role_labels():
    assert get_role_display_name("portal_admin") != "portal_admin"
    assert get_role_display_name("unknown") == "unknown"
    assert get_role_description("unknown") == "No description available"
