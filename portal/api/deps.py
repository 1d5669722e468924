"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Depends, Header, HTTPException, status

from ..domain.models import ActorContext
from ..domain.errors import AuthError, DomainError
from ..repositories.user_repo import UserRepository
from ..repositories.request_repo import RequestRepository
from ..repositories.activity_repo import ActivityRepository
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id

IMPERSONATE_HEADER = "X-Impersonate-Principal"


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


def _resolve_actor(authorization: str, impersonate: Optional[str]) -> ActorContext:
    try:
        return _jwt_get_current_user(authorization, impersonate=impersonate)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.to_dict(),
            headers={"WWW-Authenticate": "Bearer"}
        )
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


async def get_current_user_dep(
    authorization: Optional[str] = Header(None),
    impersonate: Optional[str] = Header(None, alias=IMPERSONATE_HEADER)
) -> ActorContext:
    """
    Dependency to get the effective actor of the call

    Validates the bearer token. When the impersonation header is present the
    token must belong to an admin; the returned actor is then the
    impersonated principal with impersonated_by set.

    Raises:
        HTTPException: 401 if token is invalid or missing, 403 if a
            non-admin sends the impersonation header
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": {"code": "AUTHENTICATION_ERROR", "message": "Authorization header is missing"}},
            headers={"WWW-Authenticate": "Bearer"}
        )
    return _resolve_actor(authorization, impersonate)


async def get_optional_user_dep(
    authorization: Optional[str] = Header(None),
    impersonate: Optional[str] = Header(None, alias=IMPERSONATE_HEADER)
) -> Optional[ActorContext]:
    """
    Dependency to optionally get current user

    Returns None if no token provided.
    Raises error if token is provided but invalid.
    """
    if not authorization:
        return None
    return _resolve_actor(authorization, impersonate)


# Repository providers, overridable through app.dependency_overrides

def get_user_repo() -> UserRepository:
    return UserRepository()


def get_request_repo() -> RequestRepository:
    return RequestRepository()


def get_activity_repo() -> ActivityRepository:
    return ActivityRepository()
