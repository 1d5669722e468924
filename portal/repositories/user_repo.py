"""User Repository - Login accounts"""
from typing import Any, Dict, Optional
from pymongo.collection import Collection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import UserAccount
from ..domain.errors import AlreadyExistsError, UserNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for user accounts. E-mails are stored lowercased."""

    def __init__(self):
        self._users: Collection = get_collection("users")

    def create_user(self, account: UserAccount) -> UserAccount:
        doc = account.model_dump()
        doc["email"] = account.email.lower()
        doc["_id"] = account.user_id
        try:
            self._users.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError(
                f"An account for {account.email} already exists",
                details={"email": account.email}
            )
        logger.info(f"Created user: {account.user_id}", extra={"actor_id": account.user_id})
        return account.model_copy(update={"email": doc["email"]})

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        doc = self._users.find_one({"email": email.strip().lower()})
        return self._to_model(doc)

    def get_by_id(self, user_id: str) -> Optional[UserAccount]:
        doc = self._users.find_one({"user_id": user_id})
        return self._to_model(doc)

    def get_by_verification_token(self, token: str) -> Optional[UserAccount]:
        doc = self._users.find_one({"verification_token": token})
        return self._to_model(doc)

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> UserAccount:
        """Apply a $set to the account and return the updated copy"""
        doc = self._users.find_one_and_update(
            {"user_id": user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return self._to_model(doc)

    @staticmethod
    def _to_model(doc: Optional[Dict[str, Any]]) -> Optional[UserAccount]:
        if not doc:
            return None
        doc.pop("_id", None)
        return UserAccount.model_validate(doc)
