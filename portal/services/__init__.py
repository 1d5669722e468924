"""Service modules - Business logic layer"""
from .auth_service import AuthService
from .request_service import RequestService
from .activity_service import ActivityService

__all__ = [
    "AuthService",
    "RequestService",
    "ActivityService",
]
