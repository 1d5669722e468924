"""API module - Routes, dependencies and repository providers"""
from .deps import (
    get_current_user_dep,
    get_correlation_id_dep,
    get_user_repo,
    get_request_repo,
    get_activity_repo,
)

__all__ = [
    "get_current_user_dep",
    "get_correlation_id_dep",
    "get_user_repo",
    "get_request_repo",
    "get_activity_repo",
]
