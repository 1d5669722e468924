"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .user_repo import UserRepository
from .request_repo import RequestRepository
from .activity_repo import ActivityRepository

__all__ = [
    "get_database",
    "get_collection",
    "UserRepository",
    "RequestRepository",
    "ActivityRepository",
]
