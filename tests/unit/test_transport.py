"""HTTP transport: headers, payloads and error mapping"""

import asyncio
import json

import httpx
import pytest

from portal.client.transport import PortalTransport
from portal.domain.enums import RequestStatus
from portal.domain.errors import (
    AlreadyExistsError, AuthError, ConcurrencyError, ImpersonationNotAllowedError, PermissionDeniedError,
    RequestNotFoundError, TransportError, ValidationError,
)
from portal.session.state import SessionState
from portal.utils.jwt import decode_impersonation_header
from portal.utils.logger import get_correlation_id
from tests.fakes import make_record


def run_with(handler, call):
    async def scenario():
        transport = PortalTransport(base_url="http://portal.test/api/v1", transport=httpx.MockTransport(handler))
        try:
            return await call(transport)
        finally:
            await transport.aclose()

    return asyncio.run(scenario())


def test_login_returns_user_and_token():
    def handler(request):
        assert request.url.path == "/api/v1/auth/login"
        assert json.loads(request.content) == {"email": "a@x.test", "password": "pw"}
        return httpx.Response(200, json={"message": "Login successful", "user": {"id": "u1"}, "token": "tok"})

    user, token = run_with(handler, lambda t: t.login("a@x.test", "pw"))
    assert user == {"id": "u1"}
    assert token == "tok"


@pytest.mark.parametrize("body", [
    {"error": "Invalid email or password"},
    {"error": {"code": "AUTHENTICATION_ERROR", "message": "Invalid email or password", "details": {}}},
    {"detail": {"error": {"code": "AUTHENTICATION_ERROR", "message": "Invalid email or password"}}},
])
def test_login_error_message_kept_verbatim(body):
    def handler(request):
        return httpx.Response(401, json=body)

    with pytest.raises(AuthError) as exc_info:
        run_with(handler, lambda t: t.login("a@x.test", "bad"))
    assert exc_info.value.message == "Invalid email or password"


def test_register_always_asks_for_a_client_account():
    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/api/v1/auth/register"
        assert "Authorization" not in request.headers
        assert json.loads(request.content) == {
            "email": "new@acme.test", "password": "secret1", "name": "Acme", "role": "client",
        }
        return httpx.Response(201, json={
            "message": "User registered successfully. Please verify your email.",
            "user": {"id": "u5", "role": "client"},
            "verification_token": "verify-1",
        })

    message, token = run_with(handler, lambda t: t.register("new@acme.test", "secret1", "Acme"))
    assert message == "User registered successfully. Please verify your email."
    assert token == "verify-1"


def test_register_duplicate_email_message_kept_verbatim():
    def handler(request):
        return httpx.Response(409, json={"detail": {"error": {
            "code": "ALREADY_EXISTS", "message": "User already exists with this email",
        }}})

    with pytest.raises(AlreadyExistsError) as exc_info:
        run_with(handler, lambda t: t.register("dup@acme.test", "secret1", "Dup"))
    assert exc_info.value.message == "User already exists with this email"


def test_change_password_sends_bearer_token(admin):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        assert request.url.path == "/api/v1/auth/change-password"
        assert json.loads(request.content) == {"current_password": "secret1", "new_password": "secret2"}
        return httpx.Response(200, json={"message": "Password changed successfully"})

    state = SessionState(principal=admin, is_authenticated=True, access_token="tok-3")
    message = run_with(handler, lambda t: t.change_password(state, "secret1", "secret2"))
    assert message == "Password changed successfully"
    assert seen["auth"] == "Bearer tok-3"


def test_change_password_wrong_current_password_message_kept_verbatim(admin):
    def handler(request):
        return httpx.Response(401, json={"detail": {"error": {
            "code": "AUTHENTICATION_ERROR", "message": "Current password is incorrect",
        }}})

    state = SessionState(principal=admin, is_authenticated=True, access_token="tok-3")
    with pytest.raises(AuthError) as exc_info:
        run_with(handler, lambda t: t.change_password(state, "wrong1", "secret2"))
    assert exc_info.value.message == "Current password is incorrect"


def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        run_with(handler, lambda t: t.login("a@x.test", "pw"))


def test_unmapped_status_is_transport_error():
    def handler(request):
        return httpx.Response(503, text="maintenance")

    with pytest.raises(TransportError) as exc_info:
        run_with(handler, lambda t: t.login("a@x.test", "pw"))
    assert exc_info.value.status_code == 503


@pytest.mark.parametrize("status, code, expected", [
    (403, "PERMISSION_DENIED", PermissionDeniedError),
    (403, "IMPERSONATION_NOT_ALLOWED", ImpersonationNotAllowedError),
    (404, "REQUEST_NOT_FOUND", RequestNotFoundError),
    (409, "CONCURRENCY_CONFLICT", ConcurrencyError),
    (400, "VALIDATION_ERROR", ValidationError),
])
def test_error_codes_map_to_domain_errors(status, code, expected):
    def handler(request):
        return httpx.Response(status, json={"detail": {"error": {"code": code, "message": "nope", "details": {}}}})

    state = SessionState()
    with pytest.raises(expected):
        run_with(handler, lambda t: t.get_request(state, "r7"))


def test_patch_sends_token_and_single_field(admin):
    record = make_record(status=RequestStatus.COMPLETED, version=2)
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["impersonate"] = request.headers.get("X-Impersonate-Principal")
        seen["correlation"] = request.headers.get("X-Correlation-Id")
        seen["logged_correlation"] = get_correlation_id()
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=record.model_dump(mode="json"))

    state = SessionState(principal=admin, is_authenticated=True, access_token="tok-9")
    result = run_with(handler, lambda t: t.patch_request(state, "r7", "status", RequestStatus.COMPLETED, expected_version=1))

    assert result.status == RequestStatus.COMPLETED
    assert seen["auth"] == "Bearer tok-9"
    assert seen["impersonate"] is None
    assert seen["body"] == {"field": "status", "value": "completed", "expected_version": 1}
    # Client-side logs during the call carry the id sent to the server
    assert seen["correlation"] == seen["logged_correlation"]
    assert get_correlation_id() is None


def test_impersonated_session_sends_overlay_header(admin, client_principal):
    overlay = client_principal.model_copy(update={"impersonated": True})
    state = SessionState(
        principal=overlay, is_authenticated=True, impersonating=True,
        original_principal=admin, access_token="admin-token",
    )
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["impersonate"] = request.headers.get("X-Impersonate-Principal")
        return httpx.Response(200, json=[])

    run_with(handler, lambda t: t.list_activity(state, "r7"))
    assert seen["auth"] == "Bearer admin-token"
    assert decode_impersonation_header(seen["impersonate"]) == overlay


def test_malformed_payload_is_transport_error():
    def handler(request):
        return httpx.Response(200, json={"id": "r7"})

    with pytest.raises(TransportError):
        run_with(handler, lambda t: t.get_request(SessionState(), "r7"))
