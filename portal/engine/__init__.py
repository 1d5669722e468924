"""Rules Engine - Permissions, message policy, field rules and ledger writes"""
from .permission_engine import has_permission, has_any_permission, has_all_permissions, can_access_route
from .permission_guard import PermissionGuard
from .message_policy import can_edit_message, can_delete_message
from .field_rules import coerce_field_value, describe_field_update
from .activity_writer import ActivityWriter

__all__ = [
    "has_permission",
    "has_any_permission",
    "has_all_permissions",
    "can_access_route",
    "PermissionGuard",
    "can_edit_message",
    "can_delete_message",
    "coerce_field_value",
    "describe_field_update",
    "ActivityWriter",
]
