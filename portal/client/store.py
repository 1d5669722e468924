"""Request Store - Client-held copies of requests and their activity ledgers"""
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..domain.models import ActivityLogEntry, RequestRecord
from ..utils.logger import get_logger

logger = get_logger(__name__)


def sort_ledger(entries: Iterable[ActivityLogEntry]) -> List[ActivityLogEntry]:
    """Oldest first; sorted() is stable so equal timestamps keep their order"""
    return sorted(entries, key=lambda entry: entry.created_at)


class RequestStore:
    """
    What the UI currently shows.

    Single writer (the event loop), so no locking. Records are replaced,
    never mutated in place; ledgers are kept in ascending created_at order.
    """

    def __init__(self):
        self._records: Dict[str, RequestRecord] = {}
        self._ledgers: Dict[str, List[ActivityLogEntry]] = {}
        self._stale_ledgers: Set[str] = set()
        self._listeners: List[Callable[[str], None]] = []

    def subscribe(self, listener: Callable[[str], None]) -> None:
        """listener(request_id) runs after every change to that request"""
        self._listeners.append(listener)

    def _changed(self, request_id: str) -> None:
        for listener in list(self._listeners):
            listener(request_id)

    # Records

    def get(self, request_id: str) -> Optional[RequestRecord]:
        return self._records.get(request_id)

    def put(self, record: RequestRecord) -> None:
        self._records[record.id] = record
        self._changed(record.id)

    def merge_field(self, request_id: str, source: RequestRecord, field_name: str) -> RequestRecord:
        """
        Copy only `field_name` from `source` onto the held record; every other
        field keeps its local value. updated_at and version are taken only
        when `source` is at least as new as the held record, so they never
        move backwards when responses for different fields arrive out of order.
        """
        held = self._records.get(request_id)
        if held is None:
            merged = source
        else:
            update = {field_name: getattr(source, field_name)}
            if source.version >= held.version:
                update["updated_at"] = source.updated_at
                update["version"] = source.version
            merged = held.model_copy(update=update)
        self._records[request_id] = merged
        self._changed(request_id)
        return merged

    def drop(self, request_id: str) -> None:
        self._records.pop(request_id, None)
        self._ledgers.pop(request_id, None)
        self._stale_ledgers.discard(request_id)
        self._changed(request_id)

    # Ledgers

    def entries(self, request_id: str) -> List[ActivityLogEntry]:
        return list(self._ledgers.get(request_id, []))

    def replace_ledger(self, request_id: str, entries: Iterable[ActivityLogEntry]) -> None:
        self._ledgers[request_id] = sort_ledger(entries)
        self._stale_ledgers.discard(request_id)
        self._changed(request_id)

    def add_entry(self, entry: ActivityLogEntry) -> None:
        ledger = self._ledgers.setdefault(entry.request_id, [])
        ledger.append(entry)
        self._ledgers[entry.request_id] = sort_ledger(ledger)
        self._changed(entry.request_id)

    def replace_entry(self, entry: ActivityLogEntry) -> None:
        ledger = self._ledgers.get(entry.request_id, [])
        self._ledgers[entry.request_id] = [entry if e.id == entry.id else e for e in ledger]
        self._changed(entry.request_id)

    def remove_entry(self, request_id: str, entry_id: str) -> None:
        ledger = self._ledgers.get(request_id, [])
        self._ledgers[request_id] = [e for e in ledger if e.id != entry_id]
        self._changed(request_id)

    def find_entry(self, request_id: str, entry_id: str) -> Optional[ActivityLogEntry]:
        for entry in self._ledgers.get(request_id, []):
            if entry.id == entry_id:
                return entry
        return None

    def mark_ledger_stale(self, request_id: str) -> None:
        logger.warning("Activity ledger marked stale", extra={"request_id": request_id})
        self._stale_ledgers.add(request_id)
        self._changed(request_id)

    def is_ledger_stale(self, request_id: str) -> bool:
        return request_id in self._stale_ledgers
