"""Request Repository - Data access for service requests"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import RequestRecord
from ..domain.errors import RequestNotFoundError, ConcurrencyError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RequestRepository:
    """Repository for service request operations"""

    def __init__(self):
        self._requests: Collection = get_collection("requests")

    def create_request(self, record: RequestRecord) -> RequestRecord:
        """Create a new request"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = record.model_dump()
        doc["_id"] = record.id

        self._requests.insert_one(doc)
        logger.info(f"Created request: {record.id}", extra={"request_id": record.id})
        return record

    def get_request(self, request_id: str) -> Optional[RequestRecord]:
        """Get request by ID"""
        doc = self._requests.find_one({"id": request_id})
        if doc:
            doc.pop("_id", None)
            return RequestRecord.model_validate(doc)
        return None

    def get_request_or_raise(self, request_id: str) -> RequestRecord:
        """Get request by ID or raise error"""
        record = self.get_request(request_id)
        if not record:
            raise RequestNotFoundError(f"Request {request_id} not found")
        return record

    def list_requests(self, client_id: Optional[str] = None, limit: int = 100) -> List[RequestRecord]:
        """List requests, newest activity first"""
        query: Dict[str, Any] = {}
        if client_id:
            query["client_id"] = client_id
        cursor = self._requests.find(query).sort("updated_at", DESCENDING).limit(limit)
        results = []
        for doc in cursor:
            doc.pop("_id", None)
            results.append(RequestRecord.model_validate(doc))
        return results

    def patch_field(
        self,
        request_id: str,
        field_name: str,
        value: Any,
        expected_version: Optional[int] = None
    ) -> RequestRecord:
        """Set a single field and bump the version, with optional optimistic concurrency"""
        filter_query: Dict[str, Any] = {"id": request_id}
        if expected_version is not None:
            filter_query["version"] = expected_version

        result = self._requests.find_one_and_update(
            filter_query,
            {
                "$set": {field_name: value, "updated_at": utc_now()},
                "$inc": {"version": 1}
            },
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            if expected_version is not None:
                exists = self._requests.find_one({"id": request_id})
                if exists:
                    raise ConcurrencyError(
                        f"Request {request_id} was modified. Please refresh and try again.",
                        details={"expected_version": expected_version, "current_version": exists.get("version")}
                    )
            raise RequestNotFoundError(f"Request {request_id} not found")

        result.pop("_id", None)
        logger.info(
            f"Patched request field: {field_name}",
            extra={"request_id": request_id, "field": field_name}
        )
        return RequestRecord.model_validate(result)

    def delete_request(self, request_id: str) -> bool:
        result = self._requests.delete_one({"id": request_id})
        if result.deleted_count:
            logger.info(f"Deleted request: {request_id}", extra={"request_id": request_id})
        return result.deleted_count > 0
