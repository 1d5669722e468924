"""Session State - Immutable session value and the reducer that replaces it"""
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, model_validator

from ..domain.enums import Role
from ..domain.models import Principal, ActorSnapshot


class SessionState(BaseModel):
    """
    Who the portal is acting as.

    `principal` is the effective identity. While impersonating it is the
    derived principal and `original_principal` holds the admin who started
    the overlay. Only one overlay level exists.
    """
    model_config = ConfigDict(frozen=True)

    principal: Optional[Principal] = None
    is_authenticated: bool = False
    impersonating: bool = False
    original_principal: Optional[Principal] = None
    access_token: Optional[str] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "SessionState":
        if self.is_authenticated and self.principal is None:
            raise ValueError("authenticated session needs a principal")
        if self.impersonating:
            if self.original_principal is None:
                raise ValueError("impersonation needs the original principal")
            if self.original_principal.role != Role.ADMIN:
                raise ValueError("only an admin can impersonate")
            if self.principal is None or not self.principal.impersonated:
                raise ValueError("impersonated principal must carry the impersonated flag")
        elif self.original_principal is not None:
            raise ValueError("original principal is only kept while impersonating")
        return self

    def actor_snapshot(self) -> Optional[ActorSnapshot]:
        """Snapshot of the effective identity for a new ledger entry"""
        if self.principal is None:
            return None
        impersonated_by = self.original_principal.id if self.impersonating else None
        return ActorSnapshot.from_principal(self.principal, impersonated_by=impersonated_by)


EMPTY_SESSION = SessionState()


# ============================================================================
# Actions
# ============================================================================

class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class LoginSucceeded(_Action):
    principal: Principal
    access_token: Optional[str] = None


class LoggedOut(_Action):
    pass


class Impersonated(_Action):
    principal: Principal


class ImpersonationStopped(_Action):
    pass


class ProfileUpdated(_Action):
    name: str
    email: str


SessionAction = Union[LoginSucceeded, LoggedOut, Impersonated, ImpersonationStopped, ProfileUpdated]


def reduce(state: SessionState, action: SessionAction) -> SessionState:
    """
    Pure transition function; always returns a new SessionState.

    Raises ValueError (via the state invariants) for transitions that are
    not allowed, e.g. Impersonated on a non-admin session.
    """
    if isinstance(action, LoginSucceeded):
        return SessionState(
            principal=action.principal,
            is_authenticated=True,
            access_token=action.access_token,
        )

    if isinstance(action, LoggedOut):
        return EMPTY_SESSION

    if isinstance(action, Impersonated):
        if state.impersonating:
            raise ValueError("already impersonating")
        return SessionState(
            principal=action.principal,
            is_authenticated=True,
            impersonating=True,
            original_principal=state.principal,
            access_token=state.access_token,
        )

    if isinstance(action, ImpersonationStopped):
        if not state.impersonating:
            return state
        return SessionState(
            principal=state.original_principal,
            is_authenticated=True,
            access_token=state.access_token,
        )

    if isinstance(action, ProfileUpdated):
        if state.principal is None:
            return state
        updated = state.principal.model_copy(update={"name": action.name, "email": action.email})
        return SessionState(
            principal=updated,
            is_authenticated=state.is_authenticated,
            impersonating=state.impersonating,
            original_principal=state.original_principal,
            access_token=state.access_token,
        )

    raise TypeError(f"Unknown session action: {type(action).__name__}")
