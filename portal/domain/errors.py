"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthError(DomainError):
    """Bad credentials, unverified account, or missing/invalid token"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Specific permission denied"""
    error_code = "PERMISSION_DENIED"


class ImpersonationNotAllowedError(AuthorizationError):
    """Impersonation headers sent by a non-admin token"""
    error_code = "IMPERSONATION_NOT_ALLOWED"


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class RequestNotFoundError(NotFoundError):
    """Service request not found"""
    error_code = "REQUEST_NOT_FOUND"


class ActivityNotFoundError(NotFoundError):
    """Activity log entry not found"""
    error_code = "ACTIVITY_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """User account not found"""
    error_code = "USER_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict"""
    error_code = "CONCURRENCY_CONFLICT"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# External Service Errors
class TransportError(DomainError):
    """Network or collaborator failure seen by the client core"""
    error_code = "TRANSPORT_ERROR"
    http_status = 502

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message, details=details, error_code=error_code)
        self.status_code = status_code


# Client-local storage
class StorageUnavailableError(DomainError):
    """Durable session storage could not be read or written"""
    error_code = "STORAGE_UNAVAILABLE"
    http_status = 500
