"""Auth endpoints: register, verify, login, change password"""

from portal.utils.jwt import encode_impersonation_header


def error_of(response):
    return response.json()["detail"]["error"]


def register_client(api, email="pat@acme.test", password="secret1"):
    response = api.post("/api/v1/auth/register", json={"email": email, "password": password, "name": "Pat"})
    assert response.status_code == 201
    return response.json()


def test_client_must_verify_before_login(api):
    registered = register_client(api)
    assert registered["user"]["role"] == "client"
    assert registered["user"]["is_verified"] is False
    assert registered["verification_token"]

    refused = api.post("/api/v1/auth/login", json={"email": "pat@acme.test", "password": "secret1"})
    assert refused.status_code == 401
    assert error_of(refused)["message"] == "Please verify your email before logging in"

    verified = api.post("/api/v1/auth/verify-email", json={"token": registered["verification_token"]})
    assert verified.status_code == 200
    assert verified.json()["user"]["is_verified"] is True

    login = api.post("/api/v1/auth/login", json={"email": "PAT@acme.test", "password": "secret1"})
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["client_id"] == registered["user"]["id"]
    assert api.get("/api/v1/requests", headers={"Authorization": f"Bearer {body['token']}"}).status_code == 200


def test_wrong_password_and_unknown_email_look_the_same(api):
    registered = register_client(api)
    api.post("/api/v1/auth/verify-email", json={"token": registered["verification_token"]})

    wrong = api.post("/api/v1/auth/login", json={"email": "pat@acme.test", "password": "nope123"})
    unknown = api.post("/api/v1/auth/login", json={"email": "who@acme.test", "password": "nope123"})
    assert wrong.status_code == unknown.status_code == 401
    assert error_of(wrong)["message"] == error_of(unknown)["message"] == "Invalid email or password"


def test_short_password_rejected(api):
    response = api.post("/api/v1/auth/register", json={"email": "a@b.test", "password": "abc", "name": "A"})
    assert response.status_code == 400
    assert error_of(response)["code"] == "VALIDATION_ERROR"


def test_duplicate_email(api):
    register_client(api)
    response = api.post("/api/v1/auth/register", json={"email": "Pat@Acme.test", "password": "secret1", "name": "P"})
    assert response.status_code == 409


def test_staff_accounts_need_an_admin(api, member, admin, auth_headers):
    payload = {"email": "new@agency.test", "password": "secret1", "name": "New", "role": "member"}

    assert api.post("/api/v1/auth/register", json=payload).status_code == 401

    by_member = api.post("/api/v1/auth/register", json=payload, headers=auth_headers(member))
    assert by_member.status_code == 403

    by_admin = api.post("/api/v1/auth/register", json=payload, headers=auth_headers(admin))
    assert by_admin.status_code == 201
    assert by_admin.json()["user"]["role"] == "member"
    assert by_admin.json()["user"]["client_id"] is None


def test_admin_accounts_are_created_verified(api, admin, auth_headers):
    payload = {"email": "boss@agency.test", "password": "secret1", "name": "Boss", "role": "admin"}
    response = api.post("/api/v1/auth/register", json=payload, headers=auth_headers(admin))
    assert response.status_code == 201
    assert response.json()["verification_token"] is None

    login = api.post("/api/v1/auth/login", json={"email": "boss@agency.test", "password": "secret1"})
    assert login.status_code == 200


def test_change_password(api):
    registered = register_client(api)
    api.post("/api/v1/auth/verify-email", json={"token": registered["verification_token"]})
    token = api.post("/api/v1/auth/login", json={"email": "pat@acme.test", "password": "secret1"}).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    bad = api.post(
        "/api/v1/auth/change-password",
        json={"current_password": "wrong1", "new_password": "better1"},
        headers=headers,
    )
    assert bad.status_code == 401

    ok = api.post(
        "/api/v1/auth/change-password",
        json={"current_password": "secret1", "new_password": "better1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert api.post("/api/v1/auth/login", json={"email": "pat@acme.test", "password": "better1"}).status_code == 200


def test_no_password_change_while_impersonating(api, admin, client_principal, auth_headers):
    headers = auth_headers(admin)
    headers["X-Impersonate-Principal"] = encode_impersonation_header(client_principal)
    response = api.post(
        "/api/v1/auth/change-password",
        json={"current_password": "secret1", "new_password": "better1"},
        headers=headers,
    )
    assert response.status_code == 401


def test_expired_or_forged_token(api):
    response = api.get("/api/v1/requests", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert api.get("/api/v1/requests").status_code == 401
