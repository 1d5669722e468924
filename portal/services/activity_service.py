"""Activity Service - Per-request activity ledger"""
from typing import List, Optional

from ..domain.models import ActivityLogEntry, ActorContext, ActorSnapshot
from ..domain.errors import ActivityNotFoundError, ValidationError
from ..engine.permission_guard import PermissionGuard
from ..engine.activity_writer import ActivityWriter
from ..repositories.request_repo import RequestRepository
from ..repositories.activity_repo import ActivityRepository
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActivityService:
    """
    Service for activity ledger operations

    The actor snapshot of a new entry is always taken from the authenticated
    actor. A snapshot supplied by the caller is only compared and logged.
    """

    def __init__(
        self,
        request_repo: Optional[RequestRepository] = None,
        activity_repo: Optional[ActivityRepository] = None
    ):
        self.request_repo = request_repo if request_repo is not None else RequestRepository()
        self.activity_repo = activity_repo if activity_repo is not None else ActivityRepository()
        self.writer = ActivityWriter(self.activity_repo)
        self.guard = PermissionGuard()

    def list_activity(self, request_id: str, actor: ActorContext) -> List[ActivityLogEntry]:
        """Ledger of a request, oldest first"""
        record = self.request_repo.get_request_or_raise(request_id)
        self.guard.require_view_request(actor, record)
        return self.activity_repo.list_for_request(request_id)

    def append(
        self,
        request_id: str,
        action: str,
        actor: ActorContext,
        description: Optional[str] = None,
        entity_type: Optional[str] = None,
        claimed_snapshot: Optional[ActorSnapshot] = None
    ) -> ActivityLogEntry:
        if not action:
            raise ValidationError("action is required")
        record = self.request_repo.get_request_or_raise(request_id)
        self.guard.require_append(actor, record, entity_type)

        snapshot = actor.snapshot()
        if claimed_snapshot is not None and claimed_snapshot != snapshot:
            logger.warning(
                "Client-supplied actor snapshot differs from the authenticated actor",
                extra={"request_id": request_id, "actor_id": actor.id, "action": action}
            )

        return self.writer.write_event(
            request_id=request_id,
            action=action,
            actor=snapshot,
            description=description,
            entity_type=entity_type
        )

    def _get_entry(self, request_id: str, activity_id: str) -> ActivityLogEntry:
        entry = self.activity_repo.get_entry(request_id, activity_id)
        if entry is None:
            raise ActivityNotFoundError(
                f"Activity {activity_id} not found",
                details={"request_id": request_id, "activity_id": activity_id}
            )
        return entry

    def edit_message(
        self,
        request_id: str,
        activity_id: str,
        description: str,
        actor: ActorContext
    ) -> ActivityLogEntry:
        """Rewrite a message's text; snapshot and created_at are kept"""
        if not description or not description.strip():
            raise ValidationError("Message text cannot be empty")

        entry = self._get_entry(request_id, activity_id)
        if not entry.is_message:
            raise ValidationError(
                "Only messages can be edited",
                details={"activity_id": activity_id, "entity_type": entry.entity_type}
            )
        self.guard.require_edit_message(actor, entry)

        updated = self.activity_repo.update_description(request_id, activity_id, description, utc_now())
        if updated is None:
            raise ActivityNotFoundError(f"Activity {activity_id} not found")
        return updated

    def delete_entry(self, request_id: str, activity_id: str, actor: ActorContext) -> None:
        entry = self._get_entry(request_id, activity_id)
        self.guard.require_delete_message(actor, entry)
        self.activity_repo.delete_entry(request_id, activity_id)
        logger.info(
            "Deleted activity entry",
            extra={"request_id": request_id, "activity_id": activity_id, "actor_id": actor.id}
        )
