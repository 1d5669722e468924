"""Activity Ledger - Client side of the per-request activity log"""
from typing import List, Optional

from ..domain.enums import ActivityAction, EntityType
from ..domain.errors import ActivityNotFoundError, PermissionDeniedError, ValidationError
from ..domain.models import ActivityLogEntry
from ..engine.message_policy import can_delete_message, can_edit_message
from ..utils.logger import get_logger
from .store import RequestStore

logger = get_logger(__name__)


class ActivityLedger:
    """
    Append, read and curate ledger entries for the requests the UI holds.

    New entries are stamped with the snapshot of the session's effective
    identity at call time. Pass `state` to pin an earlier SessionState
    (the field-update pipeline does this).
    """

    def __init__(self, transport, identity, store: RequestStore):
        self.transport = transport
        self.identity = identity
        self.store = store

    def _state(self, state=None):
        return state if state is not None else self.identity.state

    async def append(
        self,
        request_id: str,
        action: str,
        description: Optional[str] = None,
        entity_type: Optional[str] = None,
        state=None
    ) -> ActivityLogEntry:
        state = self._state(state)
        entry = await self.transport.append_activity(
            state,
            request_id,
            action,
            description=description,
            entity_type=entity_type,
            actor_snapshot=state.actor_snapshot(),
        )
        self.store.add_entry(entry)
        return entry

    async def refresh(self, request_id: str, state=None) -> List[ActivityLogEntry]:
        entries = await self.transport.list_activity(self._state(state), request_id)
        self.store.replace_ledger(request_id, entries)
        return self.store.entries(request_id)

    def entries(self, request_id: str) -> List[ActivityLogEntry]:
        return self.store.entries(request_id)

    async def post_message(self, request_id: str, text: str) -> ActivityLogEntry:
        if not text or not text.strip():
            raise ValidationError("Message text cannot be empty")
        return await self.append(
            request_id,
            ActivityAction.MESSAGE_POSTED.value,
            description=text,
            entity_type=EntityType.MESSAGE.value,
        )

    def _held_entry(self, request_id: str, entry_id: str) -> ActivityLogEntry:
        entry = self.store.find_entry(request_id, entry_id)
        if entry is None:
            raise ActivityNotFoundError(
                f"Activity {entry_id} not found",
                details={"request_id": request_id, "activity_id": entry_id}
            )
        return entry

    async def edit_message(self, request_id: str, entry_id: str, new_description: str) -> ActivityLogEntry:
        """Rewrite one of the caller's messages (any message for admins)"""
        if not new_description or not new_description.strip():
            raise ValidationError("Message text cannot be empty")
        state = self.identity.state
        entry = self._held_entry(request_id, entry_id)
        if not entry.is_message:
            raise ValidationError(
                "Only messages can be edited",
                details={"activity_id": entry_id, "entity_type": entry.entity_type}
            )
        if not can_edit_message(entry, state.principal):
            raise PermissionDeniedError("You can only edit your own messages", details={"activity_id": entry_id})

        updated = await self.transport.edit_activity(state, request_id, entry_id, new_description)
        self.store.replace_entry(updated)
        return updated

    async def delete_message(self, request_id: str, entry_id: str) -> None:
        state = self.identity.state
        entry = self._held_entry(request_id, entry_id)
        if not can_delete_message(entry, state.principal):
            raise PermissionDeniedError("You can only delete your own messages", details={"activity_id": entry_id})

        await self.transport.delete_activity(state, request_id, entry_id)
        self.store.remove_entry(request_id, entry_id)
        logger.info("Deleted activity entry", extra={"request_id": request_id, "activity_id": entry_id})
