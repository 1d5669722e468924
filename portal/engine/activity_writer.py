"""Activity Writer - Append-only ledger entries"""
from typing import Optional

from ..domain.models import ActivityLogEntry, ActorSnapshot
from ..domain.enums import ActivityAction, EntityType
from ..repositories.activity_repo import ActivityRepository
from ..utils.idgen import generate_activity_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActivityWriter:
    """
    Write activity ledger entries (append-only)

    Every entry carries a snapshot of the acting identity copied at write
    time. Entries are never rewritten here; message edits go through the
    repository's description-only update.
    """

    def __init__(self, repo: Optional[ActivityRepository] = None):
        self.repo = repo if repo is not None else ActivityRepository()

    def write_event(
        self,
        request_id: str,
        action: str,
        actor: Optional[ActorSnapshot],
        description: Optional[str] = None,
        entity_type: Optional[str] = None
    ) -> ActivityLogEntry:
        """Write a single ledger entry"""
        entry = ActivityLogEntry(
            id=generate_activity_id(),
            request_id=request_id,
            action=action,
            description=description,
            entity_type=entity_type,
            actor_snapshot=actor,
            created_at=utc_now()
        )
        return self.repo.append(entry)

    def write_request_submitted(self, request_id: str, actor: ActorSnapshot) -> ActivityLogEntry:
        """Write request submission entry"""
        return self.write_event(
            request_id=request_id,
            action=ActivityAction.REQUEST_SUBMITTED.value,
            actor=actor,
            description="Request was submitted",
            entity_type=EntityType.REQUEST.value
        )

