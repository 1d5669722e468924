"""Permission Guard - Server-side re-check of the client's permission gating"""
from typing import Optional

from ..domain.enums import Permission, Role, PatchableField
from ..domain.errors import PermissionDeniedError
from ..domain.models import ActorContext, ActivityLogEntry, RequestRecord
from ..utils.logger import get_logger
from .permission_engine import has_permission
from .message_policy import can_edit_message, can_delete_message

logger = get_logger(__name__)


class PermissionGuard:
    """
    Permission enforcement for collaborator endpoints

    Rules:
    - Every endpoint requires the role permission the UI gates on
    - Client principals only see requests of their own client record
    - Changing assigned_to additionally requires assign_requests
    - Message edit/delete follows the message policy
    """

    def _deny(self, actor: ActorContext, message: str, **details) -> None:
        logger.warning(
            message,
            extra={"actor_id": actor.id, "actor_role": actor.role.value, "impersonated_by": actor.impersonated_by}
        )
        raise PermissionDeniedError(message, details=details)

    def require(self, actor: ActorContext, permission: Permission) -> None:
        """Raise PermissionDeniedError unless the actor's role grants the permission"""
        if not has_permission(actor.principal, permission):
            self._deny(actor, f"Missing permission: {Permission(permission).value}", permission=Permission(permission).value)

    def can_view_request(self, actor: ActorContext, record: RequestRecord) -> bool:
        if not has_permission(actor.principal, Permission.VIEW_REQUESTS):
            return False
        if actor.role == Role.CLIENT:
            return record.client_id == getattr(actor.principal, "client_record_id", None)
        return True

    def require_view_request(self, actor: ActorContext, record: RequestRecord) -> None:
        if not self.can_view_request(actor, record):
            self._deny(actor, f"Request {record.id} is not visible to this user", request_id=record.id)

    def require_patch(self, actor: ActorContext, record: RequestRecord, field: PatchableField) -> None:
        self.require_view_request(actor, record)
        self.require(actor, Permission.EDIT_REQUESTS)
        if field == PatchableField.ASSIGNED_TO:
            self.require(actor, Permission.ASSIGN_REQUESTS)

    def require_append(self, actor: ActorContext, record: RequestRecord, entity_type: Optional[str]) -> None:
        """Messages need chat_requests, every other ledger write needs edit_requests"""
        self.require_view_request(actor, record)
        if entity_type == "message":
            self.require(actor, Permission.CHAT_REQUESTS)
        else:
            self.require(actor, Permission.EDIT_REQUESTS)

    def require_edit_message(self, actor: ActorContext, entry: ActivityLogEntry) -> None:
        if not can_edit_message(entry, actor.principal):
            self._deny(actor, f"Cannot edit activity {entry.id}", activity_id=entry.id)

    def require_delete_message(self, actor: ActorContext, entry: ActivityLogEntry) -> None:
        if not can_delete_message(entry, actor.principal):
            self._deny(actor, f"Cannot delete activity {entry.id}", activity_id=entry.id)
