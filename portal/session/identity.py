"""Session Identity - Login, logout, impersonation and restore of the portal session"""
import json
from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel

from ..config.settings import settings
from ..domain.enums import Role
from ..domain.errors import AuthError, StorageUnavailableError, TransportError, ValidationError
from ..domain.models import (
    ActorSnapshot, ClientPrincipal, Principal, TeamMemberPrincipal,
    dump_principal, parse_principal, principal_from_user,
)
from ..utils.logger import get_logger
from ..utils.passwords import MIN_PASSWORD_LENGTH
from .state import (
    EMPTY_SESSION, SessionState, SessionAction,
    LoginSucceeded, LoggedOut, Impersonated, ImpersonationStopped, ProfileUpdated, reduce,
)
from .storage import (
    SessionStorage, FileSessionStorage,
    AUTH_USER_KEY, AUTH_IMPERSONATION_KEY, AUTH_TOKEN_KEY, SESSION_KEYS,
)

logger = get_logger(__name__)

LOGIN_ROUTE = "/login"

# Id prefixes written by older sessions before the impersonated flag existed
_LEGACY_PREFIXES = ("impersonated-team-", "impersonated-")


class LoginCredentials(BaseModel):
    email: str
    password: str


class ChangePasswordData(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


def _load_object(raw: str) -> Dict[str, Any]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("stored session value is not an object")
    return data


def _restore_principal(data: Any, impersonated: bool = False) -> Principal:
    """Parse a stored principal, translating legacy id prefixes into the flag"""
    if not isinstance(data, dict):
        raise ValueError("stored principal is not an object")
    data = dict(data)
    principal_id = str(data.get("id", ""))
    for prefix in _LEGACY_PREFIXES:
        if principal_id.startswith(prefix):
            data["id"] = principal_id[len(prefix):]
            impersonated = True
            break
    if impersonated:
        data["impersonated"] = True
    return parse_principal(data)


class SessionIdentity:
    """
    Owner of the portal session.

    The current SessionState is replaced wholesale on every transition (see
    state.reduce) and handed to collaborators explicitly. Transport failures
    propagate; storage failures are logged and never break the session.
    """

    def __init__(
        self,
        transport,
        storage: Optional[SessionStorage] = None,
        navigator: Optional[Callable[[str], None]] = None
    ):
        self.transport = transport
        self.storage = storage if storage is not None else FileSessionStorage(settings.session_storage_path)
        self.navigator = navigator
        self._state: SessionState = EMPTY_SESSION
        self._subscribers: List[Callable[[SessionState], None]] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def principal(self) -> Optional[Principal]:
        return self._state.principal

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def impersonating(self) -> bool:
        return self._state.impersonating

    @property
    def original_principal(self) -> Optional[Principal]:
        return self._state.original_principal

    @property
    def access_token(self) -> Optional[str]:
        return self._state.access_token

    def actor_snapshot(self) -> Optional[ActorSnapshot]:
        return self._state.actor_snapshot()

    def subscribe(self, callback: Callable[[SessionState], None]) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it"""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for callback in list(self._subscribers):
            callback(state)

    def _dispatch(self, action: SessionAction) -> SessionState:
        self._set_state(reduce(self._state, action))
        return self._state

    def _persist(self, key: str, value: str) -> None:
        try:
            self.storage.set(key, value)
        except StorageUnavailableError as e:
            logger.warning(f"Could not persist {key}: {e.message}")

    def _forget(self, *keys: str) -> None:
        for key in keys:
            try:
                self.storage.remove(key)
            except StorageUnavailableError as e:
                logger.warning(f"Could not remove {key}: {e.message}")

    def _navigate(self, route: str) -> None:
        if self.navigator is not None:
            self.navigator(route)

    def _can_impersonate(self) -> bool:
        principal = self._state.principal
        if principal is None or principal.role != Role.ADMIN:
            logger.warning("Impersonation refused: current user is not an admin")
            return False
        if self._state.impersonating:
            logger.warning(
                "Impersonation refused: already impersonating",
                extra={"actor_id": principal.id, "impersonated_by": self._state.original_principal.id}
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def login(self, credentials: LoginCredentials) -> Principal:
        """
        Authenticate against the collaborator and start a session.

        Raises AuthError with the collaborator's message on rejected
        credentials, TransportError when the call itself fails. The state
        is untouched on failure.
        """
        user, token = await self.transport.login(credentials.email, credentials.password)
        try:
            principal = principal_from_user(user)
        except (KeyError, ValueError) as e:
            raise TransportError("Unexpected login response", details={"reason": str(e)})

        self._persist(AUTH_USER_KEY, json.dumps(dump_principal(principal)))
        if token:
            self._persist(AUTH_TOKEN_KEY, token)
        self._forget(AUTH_IMPERSONATION_KEY)

        self._dispatch(LoginSucceeded(principal=principal, access_token=token))
        logger.info("Logged in", extra={"actor_id": principal.id, "actor_role": principal.role_name})
        return principal

    def logout(self) -> None:
        self._forget(*SESSION_KEYS)
        self._dispatch(LoggedOut())
        self._navigate(LOGIN_ROUTE)

    async def register(self, email: str, password: str, name: str) -> str:
        """
        Ask the collaborator for a new client account.

        Returns the collaborator's confirmation message; the account still
        has to be verified before it can log in. The session is untouched.
        """
        message, _ = await self.transport.register(email, password, name)
        logger.info("Registered client account", extra={"email": email})
        return message

    async def change_password(self, data: ChangePasswordData) -> str:
        """
        Change the logged-in user's password.

        Mismatched or too-short new passwords are refused with
        ValidationError before anything is sent. Errors from the collaborator
        propagate with its message unchanged.
        """
        if not self._state.is_authenticated:
            raise AuthError("Not authenticated")
        if data.new_password != data.confirm_password:
            raise ValidationError("New passwords do not match")
        if len(data.new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        message = await self.transport.change_password(self._state, data.current_password, data.new_password)
        logger.info("Password changed", extra={"actor_id": self._state.principal.id})
        return message

    def _start_impersonation(self, target: Principal, payload_key: str) -> bool:
        original = self._state.principal
        self._persist(
            AUTH_IMPERSONATION_KEY,
            json.dumps({payload_key: dump_principal(target), "originalUser": dump_principal(original)})
        )
        self._dispatch(Impersonated(principal=target))
        logger.info(
            "Impersonation started",
            extra={"actor_id": target.id, "actor_role": target.role_name, "impersonated_by": original.id}
        )
        return True

    def impersonate_client(
        self,
        client_id: str,
        name: str,
        email: str,
        company: Optional[str] = None
    ) -> bool:
        """Act as a client; no-op (False) unless an admin without an overlay"""
        if not self._can_impersonate():
            return False
        target = ClientPrincipal(
            id=client_id,
            email=email,
            name=name,
            client_record_id=client_id,
            client_name=name,
            client_company=company,
            impersonated=True,
        )
        return self._start_impersonation(target, "clientUser")

    def impersonate_team_member(
        self,
        member_id: str,
        name: str,
        email: str,
        role: Role = Role.MEMBER
    ) -> bool:
        """Act as a team member; no-op (False) unless an admin without an overlay"""
        if not self._can_impersonate():
            return False
        target = TeamMemberPrincipal(id=member_id, email=email, name=name, role=role, impersonated=True)
        return self._start_impersonation(target, "user")

    def stop_impersonation(self) -> bool:
        if not self._state.impersonating:
            return False
        admin_id = self._state.original_principal.id
        self._forget(AUTH_IMPERSONATION_KEY)
        self._dispatch(ImpersonationStopped())
        logger.info("Impersonation stopped", extra={"actor_id": admin_id})
        self._navigate(settings.stop_impersonation_redirect)
        return True

    def update_profile(self, name: str, email: str) -> None:
        """Rename the current principal and persist it where it is stored"""
        if self._state.principal is None:
            return
        state = self._dispatch(ProfileUpdated(name=name, email=email))
        if state.impersonating:
            key = "clientUser" if isinstance(state.principal, ClientPrincipal) else "user"
            self._persist(
                AUTH_IMPERSONATION_KEY,
                json.dumps({key: dump_principal(state.principal), "originalUser": dump_principal(state.original_principal)})
            )
        else:
            self._persist(AUTH_USER_KEY, json.dumps(dump_principal(state.principal)))

    def restore(self) -> SessionState:
        """
        Rebuild the session from storage on start-up. Never raises.

        Anything unreadable (bad JSON, unknown shape, an overlay whose admin
        is not the stored user) purges every session key and leaves the
        session logged out.
        """
        try:
            state = self._read_stored_state()
        except (StorageUnavailableError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Discarding stored session: {e}")
            self._forget(*SESSION_KEYS)
            state = EMPTY_SESSION
        self._set_state(state)
        return state

    def _read_stored_state(self) -> SessionState:
        raw_user = self.storage.get(AUTH_USER_KEY)
        if raw_user is None:
            return EMPTY_SESSION

        principal = _restore_principal(_load_object(raw_user))
        if principal.impersonated:
            raise ValueError("stored login user is an impersonated identity")
        state = reduce(EMPTY_SESSION, LoginSucceeded(
            principal=principal,
            access_token=self.storage.get(AUTH_TOKEN_KEY),
        ))

        raw_overlay = self.storage.get(AUTH_IMPERSONATION_KEY)
        if raw_overlay is None:
            return state

        overlay = _load_object(raw_overlay)
        target = overlay.get("user") or overlay.get("clientUser")
        if target is None or "originalUser" not in overlay:
            raise ValueError("impersonation record is incomplete")
        original = _restore_principal(overlay["originalUser"])
        if original.id != principal.id:
            raise ValueError("impersonation record belongs to another login")
        return reduce(state, Impersonated(principal=_restore_principal(target, impersonated=True)))
