"""JWT Session Tokens - issued at login, validated on every collaborator call"""
import base64
import binascii
import json
import jwt
from typing import Any, Dict, Optional
from datetime import timedelta

from ..config.settings import settings
from ..domain.errors import AuthError, ImpersonationNotAllowedError
from ..domain.models import ActorContext, dump_principal, parse_principal
from ..domain.enums import Role
from .time import utc_now
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """HS256 token issuer/validator for portal sessions"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm

    def issue_token(self, principal, expires_in: Optional[timedelta] = None) -> str:
        """
        Issue a bearer token carrying the logged-in principal

        Impersonated principals never get a token of their own; the admin's
        token plus the X-Impersonate-Principal header is used instead.
        """
        if principal.impersonated:
            raise AuthError("Cannot issue a token for an impersonated identity")

        now = utc_now()
        lifetime = expires_in or timedelta(minutes=settings.jwt_expiry_minutes)
        claims = {
            "sub": principal.id,
            "principal": dump_principal(principal),
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a bearer token

        Args:
            token: Bearer token (with or without 'Bearer ' prefix)

        Returns:
            Decoded token claims

        Raises:
            AuthError: If token is invalid
        """
        if not token:
            raise AuthError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthError(f"Invalid token: {str(e)}")

    def get_actor_context(self, token: str, impersonate: Optional[str] = None) -> ActorContext:
        """
        Resolve the effective actor of a call

        Args:
            token: Bearer token
            impersonate: Value of the X-Impersonate-Principal header, if any

        Returns:
            ActorContext for the token holder, or for the impersonated
            principal with impersonated_by set to the admin's id
        """
        claims = self.validate_token(token)
        try:
            principal = parse_principal(claims.get("principal"))
        except ValueError as e:
            raise AuthError("Token does not carry a valid principal", details={"reason": str(e)})

        if not impersonate:
            return ActorContext(principal=principal)

        if principal.role != Role.ADMIN.value or principal.impersonated:
            logger.warning(
                "Impersonation header rejected",
                extra={"actor_id": principal.id, "actor_role": principal.role_name}
            )
            raise ImpersonationNotAllowedError("Only administrators may act as another user")

        target = decode_impersonation_header(impersonate)
        logger.info(
            f"Acting as {target.id}",
            extra={"actor_id": target.id, "actor_role": target.role_name, "impersonated_by": principal.id}
        )
        return ActorContext(principal=target, impersonated_by=principal.id)


def encode_impersonation_header(principal) -> str:
    """base64(JSON) form of a principal for the X-Impersonate-Principal header"""
    raw = json.dumps(dump_principal(principal), separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_impersonation_header(value: str):
    """Inverse of encode_impersonation_header; the result is always flagged impersonated"""
    try:
        data = json.loads(base64.urlsafe_b64decode(value.encode("ascii")))
        if not isinstance(data, dict):
            raise ValueError("principal must be an object")
        data["impersonated"] = True
        return parse_principal(data)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise AuthError("Malformed impersonation header", details={"reason": str(e)})


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str, impersonate: Optional[str] = None) -> ActorContext:
    """
    Get current actor from the Authorization (and impersonation) headers

    Args:
        authorization: Authorization header value
        impersonate: X-Impersonate-Principal header value

    Returns:
        ActorContext
    """
    if not authorization:
        raise AuthError("Authorization header is missing")

    validator = get_jwt_validator()
    return validator.get_actor_context(authorization, impersonate=impersonate)
