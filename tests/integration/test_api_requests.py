"""Service request endpoints with server-side permission checks"""

import pytest

from tests.fakes import make_record


def error_of(response):
    return response.json()["detail"]["error"]


@pytest.fixture
def seeded(request_repo):
    request_repo.create_request(make_record("r7", client_id="c42"))
    request_repo.create_request(make_record("r8", client_id="c99", title="Other client"))
    return request_repo


def test_client_creates_for_own_record(api, client_principal, auth_headers, activity_repo):
    response = api.post(
        "/api/v1/requests",
        json={"title": "New logo", "client_id": "c99"},
        headers=auth_headers(client_principal),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["client_id"] == "c42"
    assert body["status"] == "submitted"
    assert body["priority"] == "none"

    entries = activity_repo.list_for_request(body["id"])
    assert [e.action for e in entries] == ["request_submitted"]
    assert entries[0].actor_snapshot.user_id == "c42"
    assert entries[0].actor_snapshot.user_role == "client"


def test_staff_must_name_the_client(api, member, auth_headers):
    response = api.post("/api/v1/requests", json={"title": "No client"}, headers=auth_headers(member))
    assert response.status_code == 400


def test_viewer_cannot_create(api, viewer, auth_headers):
    response = api.post("/api/v1/requests", json={"title": "x", "client_id": "c42"}, headers=auth_headers(viewer))
    assert response.status_code == 403
    assert error_of(response)["code"] == "PERMISSION_DENIED"


def test_clients_only_see_their_own(api, seeded, client_principal, member, auth_headers):
    own = api.get("/api/v1/requests", headers=auth_headers(client_principal)).json()
    assert [r["id"] for r in own] == ["r7"]

    everything = api.get("/api/v1/requests", headers=auth_headers(member)).json()
    assert {r["id"] for r in everything} == {"r7", "r8"}

    foreign = api.get("/api/v1/requests/r8", headers=auth_headers(client_principal))
    assert foreign.status_code == 403


def test_unknown_request(api, admin, auth_headers):
    response = api.get("/api/v1/requests/nope", headers=auth_headers(admin))
    assert response.status_code == 404
    assert error_of(response)["code"] == "REQUEST_NOT_FOUND"


def test_member_patches_one_field(api, seeded, member, auth_headers):
    response = api.patch(
        "/api/v1/requests/r7",
        json={"field": "status", "value": "in_review"},
        headers=auth_headers(member),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "in_review"
    assert body["title"] == "Website refresh"
    assert body["version"] == 2


@pytest.mark.parametrize("principal_fixture", ["viewer", "client_principal"])
def test_roles_without_edit_permission_cannot_patch(api, seeded, auth_headers, request, principal_fixture):
    principal = request.getfixturevalue(principal_fixture)
    response = api.patch(
        "/api/v1/requests/r7",
        json={"field": "priority", "value": "high"},
        headers=auth_headers(principal),
    )
    assert response.status_code == 403
    assert seeded.get_request("r7").priority.value == "none"


def test_assign_and_clear(api, seeded, member, auth_headers):
    assigned = api.patch(
        "/api/v1/requests/r7", json={"field": "assigned_to", "value": "tm1"}, headers=auth_headers(member)
    )
    assert assigned.json()["assigned_to"] == "tm1"
    cleared = api.patch(
        "/api/v1/requests/r7", json={"field": "assigned_to", "value": ""}, headers=auth_headers(member)
    )
    assert cleared.json()["assigned_to"] is None


def test_patch_validation(api, seeded, admin, auth_headers):
    unknown = api.patch("/api/v1/requests/r7", json={"field": "client_id", "value": "c99"}, headers=auth_headers(admin))
    assert unknown.status_code == 400
    bad_enum = api.patch("/api/v1/requests/r7", json={"field": "status", "value": "archived"}, headers=auth_headers(admin))
    assert bad_enum.status_code == 400
    assert seeded.get_request("r7").version == 1


def test_version_mismatch(api, seeded, admin, auth_headers):
    first = api.patch(
        "/api/v1/requests/r7",
        json={"field": "title", "value": "A", "expected_version": 1},
        headers=auth_headers(admin),
    )
    assert first.status_code == 200

    stale = api.patch(
        "/api/v1/requests/r7",
        json={"field": "title", "value": "B", "expected_version": 1},
        headers=auth_headers(admin),
    )
    assert stale.status_code == 409
    assert error_of(stale)["code"] == "CONCURRENCY_CONFLICT"
    assert error_of(stale)["details"]["current_version"] == 2
    assert seeded.get_request("r7").title == "A"


def test_delete_needs_permission_and_cascades(api, seeded, admin, member, auth_headers, activity_repo):
    api.post(
        "/api/v1/requests/r7/activity",
        json={"action": "message_posted", "description": "hi", "entity_type": "message"},
        headers=auth_headers(member),
    )
    assert api.delete("/api/v1/requests/r7", headers=auth_headers(member)).status_code == 403

    response = api.delete("/api/v1/requests/r7", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json() == {"message": "Request deleted successfully"}
    assert seeded.get_request("r7") is None
    assert activity_repo.list_for_request("r7") == []
