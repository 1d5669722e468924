"""Message Policy - Who may edit or delete a ledger entry"""
from typing import Optional

from ..domain.enums import Role
from ..domain.models import ActivityLogEntry, Principal


def can_delete_message(entry: ActivityLogEntry, principal: Optional[Principal]) -> bool:
    """
    Admins may delete any entry. Everyone else only their own messages:
    the entry must be a message and its actor snapshot must name the
    principal (same id and same impersonation flag).
    """
    if principal is None:
        return False
    if principal.role == Role.ADMIN:
        return True
    if not entry.is_message or entry.actor_snapshot is None:
        return False
    return entry.actor_snapshot.identifies(principal)


def can_edit_message(entry: ActivityLogEntry, principal: Optional[Principal]) -> bool:
    """Only messages carry editable text, whoever asks"""
    if not entry.is_message:
        return False
    return can_delete_message(entry, principal)
