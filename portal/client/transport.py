"""Portal Transport - Async HTTP-JSON client for the persistence collaborator"""
from typing import Any, Dict, List, Optional, Tuple, Type
import httpx

from ..config.settings import settings
from ..domain.errors import (
    DomainError, AuthError, AuthorizationError, PermissionDeniedError, ImpersonationNotAllowedError,
    ValidationError, NotFoundError, RequestNotFoundError, ActivityNotFoundError, UserNotFoundError,
    ConflictError, ConcurrencyError, AlreadyExistsError, TransportError,
)
from ..domain.models import ActivityLogEntry, ActorSnapshot, RequestRecord
from ..engine.field_rules import to_wire_value
from ..utils.idgen import generate_correlation_id
from ..utils.jwt import encode_impersonation_header
from ..utils.logger import get_logger, correlation_scope

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"
IMPERSONATE_HEADER = "X-Impersonate-Principal"

# error.code from the collaborator -> exception raised in the client core
_ERRORS_BY_CODE: Dict[str, Type[DomainError]] = {
    cls.error_code: cls
    for cls in (
        AuthError, AuthorizationError, PermissionDeniedError, ImpersonationNotAllowedError,
        ValidationError, NotFoundError, RequestNotFoundError, ActivityNotFoundError, UserNotFoundError,
        ConflictError, ConcurrencyError, AlreadyExistsError,
    )
}

_ERRORS_BY_STATUS: Dict[int, Type[DomainError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def _parse_error(response: httpx.Response) -> Tuple[Optional[str], str, Dict[str, Any]]:
    """
    (code, message, details) from an error body

    Understands {"error": "text"}, {"error": {code, message, details}} and
    the same wrapped in FastAPI's {"detail": ...}.
    """
    try:
        body = response.json()
    except ValueError:
        return None, response.text or response.reason_phrase, {}

    if isinstance(body, dict) and "detail" in body and "error" not in body:
        body = body["detail"]
    if isinstance(body, str):
        return None, body, {}
    if not isinstance(body, dict):
        return None, response.reason_phrase, {}

    error = body.get("error", body)
    if isinstance(error, str):
        return None, error, {}
    if isinstance(error, dict):
        details = error.get("details")
        return (
            error.get("code"),
            error.get("message") or response.reason_phrase,
            details if isinstance(details, dict) else {}
        )
    return None, response.reason_phrase, {}


def error_from_response(response: httpx.Response) -> DomainError:
    """Map a non-2xx response onto the domain error hierarchy"""
    code, message, details = _parse_error(response)
    error_class = _ERRORS_BY_CODE.get(code) if code else None
    if error_class is None:
        error_class = _ERRORS_BY_STATUS.get(response.status_code)
    if error_class is None:
        return TransportError(
            message or f"Collaborator answered {response.status_code}",
            details=details,
            error_code=code,
            status_code=response.status_code
        )
    return error_class(message, details=details)


class PortalTransport:
    """
    Thin async wrapper around the collaborator's HTTP API.

    Every call that acts on behalf of the user takes the SessionState
    explicitly; its token and (while impersonating) the impersonated
    principal are sent as headers. Nothing is retried here.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PortalTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------

    @staticmethod
    def _headers(correlation_id: str, state=None) -> Dict[str, str]:
        headers = {CORRELATION_HEADER: correlation_id}
        if state is not None:
            if state.access_token:
                headers["Authorization"] = f"Bearer {state.access_token}"
            if state.impersonating and state.principal is not None:
                headers[IMPERSONATE_HEADER] = encode_impersonation_header(state.principal)
        return headers

    async def _call(self, method: str, path: str, state=None, json: Any = None) -> Any:
        with correlation_scope(generate_correlation_id()) as correlation_id:
            try:
                response = await self._client.request(
                    method, path, json=json, headers=self._headers(correlation_id, state)
                )
            except httpx.HTTPError as e:
                logger.error(f"{method} {path} failed: {e}")
                raise TransportError(f"Could not reach the portal API: {e}")

            if response.is_error:
                error = error_from_response(response)
                logger.warning(
                    f"{method} {path} -> {response.status_code}: {error.message}",
                    extra={"status": response.status_code, "error_code": error.error_code}
                )
                raise error

            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise TransportError(f"{method} {path} returned a non-JSON body", status_code=response.status_code)

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise TransportError(f"Unexpected {model.__name__} payload", details={"reason": str(e)})

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> Tuple[Dict[str, Any], Optional[str]]:
        """Returns the user payload and the bearer token"""
        data = await self._call("POST", "/auth/login", json={"email": email, "password": password})
        if not isinstance(data, dict) or not isinstance(data.get("user"), dict):
            raise TransportError("Unexpected login response")
        return data["user"], data.get("token")

    async def register(
        self,
        email: str,
        password: str,
        name: str,
        client_id: Optional[str] = None
    ) -> Tuple[str, Optional[str]]:
        """Self-registration always asks for a client account; returns (message, verification token)"""
        payload: Dict[str, Any] = {"email": email, "password": password, "name": name, "role": "client"}
        if client_id is not None:
            payload["client_id"] = client_id
        data = await self._call("POST", "/auth/register", json=payload)
        if not isinstance(data, dict) or not isinstance(data.get("message"), str):
            raise TransportError("Unexpected register response")
        return data["message"], data.get("verification_token")

    async def change_password(self, state, current_password: str, new_password: str) -> str:
        data = await self._call(
            "POST",
            "/auth/change-password",
            state,
            json={"current_password": current_password, "new_password": new_password}
        )
        if not isinstance(data, dict) or not isinstance(data.get("message"), str):
            raise TransportError("Unexpected change-password response")
        return data["message"]

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def create_request(
        self,
        state,
        title: str,
        description: Optional[str] = None,
        client_id: Optional[str] = None,
        priority: Optional[str] = None
    ) -> RequestRecord:
        payload: Dict[str, Any] = {"title": title, "description": description, "client_id": client_id}
        if priority is not None:
            payload["priority"] = to_wire_value(priority)
        data = await self._call("POST", "/requests", state, json=payload)
        return self._parse(RequestRecord, data)

    async def get_request(self, state, request_id: str) -> RequestRecord:
        data = await self._call("GET", f"/requests/{request_id}", state)
        return self._parse(RequestRecord, data)

    async def patch_request(
        self,
        state,
        request_id: str,
        field_name: str,
        value: Any,
        expected_version: Optional[int] = None
    ) -> RequestRecord:
        payload: Dict[str, Any] = {"field": field_name, "value": to_wire_value(value)}
        if expected_version is not None:
            payload["expected_version"] = expected_version
        data = await self._call("PATCH", f"/requests/{request_id}", state, json=payload)
        return self._parse(RequestRecord, data)

    async def delete_request(self, state, request_id: str) -> None:
        await self._call("DELETE", f"/requests/{request_id}", state)

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    async def list_activity(self, state, request_id: str) -> List[ActivityLogEntry]:
        data = await self._call("GET", f"/requests/{request_id}/activity", state)
        if not isinstance(data, list):
            raise TransportError("Unexpected activity list payload")
        return [self._parse(ActivityLogEntry, item) for item in data]

    async def append_activity(
        self,
        state,
        request_id: str,
        action: str,
        description: Optional[str] = None,
        entity_type: Optional[str] = None,
        actor_snapshot: Optional[ActorSnapshot] = None
    ) -> ActivityLogEntry:
        payload: Dict[str, Any] = {
            "action": action,
            "description": description,
            "entity_type": entity_type,
            "actor_snapshot": actor_snapshot.model_dump(mode="json") if actor_snapshot else None,
        }
        data = await self._call("POST", f"/requests/{request_id}/activity", state, json=payload)
        return self._parse(ActivityLogEntry, data)

    async def edit_activity(
        self,
        state,
        request_id: str,
        activity_id: str,
        description: str
    ) -> ActivityLogEntry:
        data = await self._call(
            "PUT",
            f"/requests/{request_id}/activity/{activity_id}",
            state,
            json={"description": description}
        )
        return self._parse(ActivityLogEntry, data)

    async def delete_activity(self, state, request_id: str, activity_id: str) -> None:
        await self._call("DELETE", f"/requests/{request_id}/activity/{activity_id}", state)
