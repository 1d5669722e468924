"""Activity Repository - Data access for the per-request activity ledger"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import ActivityLogEntry
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _to_doc(entry: ActivityLogEntry) -> Dict[str, Any]:
    doc = entry.model_dump(mode="json")
    # Keep native datetimes so MongoDB sorts chronologically
    doc["created_at"] = entry.created_at
    doc["edited_at"] = entry.edited_at
    doc["_id"] = entry.id
    return doc


def _from_doc(doc: Dict[str, Any]) -> ActivityLogEntry:
    doc.pop("_id", None)
    return ActivityLogEntry.model_validate(doc)


class ActivityRepository:
    """Repository for activity ledger entries (append-only apart from message text)"""

    def __init__(self):
        self._activity: Collection = get_collection("activity_log")

    def append(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        """Insert a new entry"""
        self._activity.insert_one(_to_doc(entry))
        logger.info(
            f"Appended activity: {entry.action}",
            extra={
                "request_id": entry.request_id,
                "activity_id": entry.id,
                "actor_id": entry.actor_snapshot.user_id if entry.actor_snapshot else None
            }
        )
        return entry

    def list_for_request(self, request_id: str) -> List[ActivityLogEntry]:
        """Ledger for a request, oldest first"""
        cursor = self._activity.find({"request_id": request_id}).sort("created_at", ASCENDING)
        return [_from_doc(doc) for doc in cursor]

    def get_entry(self, request_id: str, activity_id: str) -> Optional[ActivityLogEntry]:
        doc = self._activity.find_one({"id": activity_id, "request_id": request_id})
        if doc:
            return _from_doc(doc)
        return None

    def update_description(
        self,
        request_id: str,
        activity_id: str,
        description: str,
        edited_at: datetime
    ) -> Optional[ActivityLogEntry]:
        """Rewrite the text of an entry; actor snapshot and created_at are left alone"""
        doc = self._activity.find_one_and_update(
            {"id": activity_id, "request_id": request_id},
            {"$set": {"description": description, "edited_at": edited_at}},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            return None
        logger.info(
            "Edited activity description",
            extra={"request_id": request_id, "activity_id": activity_id}
        )
        return _from_doc(doc)

    def delete_entry(self, request_id: str, activity_id: str) -> bool:
        result = self._activity.delete_one({"id": activity_id, "request_id": request_id})
        return result.deleted_count > 0

    def delete_for_request(self, request_id: str) -> int:
        """Drop the whole ledger of a deleted request"""
        result = self._activity.delete_many({"request_id": request_id})
        logger.info(
            f"Deleted {result.deleted_count} activity entries",
            extra={"request_id": request_id}
        )
        return result.deleted_count
