"""Domain Enumerations - Roles, permissions, status and type definitions"""
from enum import Enum


# ============================================================================
# Identity
# ============================================================================

class Role(str, Enum):
    """Roles known to the permission table"""
    ADMIN = "admin"
    PORTAL_ADMIN = "portal_admin"  # Same permissions as ADMIN
    MEMBER = "member"
    VIEWER = "viewer"
    CLIENT = "client"


class PrincipalKind(str, Enum):
    """Which variant of the principal union a session holds"""
    ADMIN = "admin"
    TEAM_MEMBER = "team_member"
    CLIENT = "client"


class Permission(str, Enum):
    """Closed set of capabilities checked against a role"""
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_REQUESTS = "view_requests"
    CREATE_REQUESTS = "create_requests"
    EDIT_REQUESTS = "edit_requests"
    DELETE_REQUESTS = "delete_requests"
    VIEW_CLIENTS = "view_clients"
    CREATE_CLIENTS = "create_clients"
    EDIT_CLIENTS = "edit_clients"
    DELETE_CLIENTS = "delete_clients"
    VIEW_TEAM = "view_team"
    CREATE_TEAM = "create_team"
    EDIT_TEAM = "edit_team"
    DELETE_TEAM = "delete_team"
    VIEW_INVOICES = "view_invoices"
    CREATE_INVOICES = "create_invoices"
    EDIT_INVOICES = "edit_invoices"
    DELETE_INVOICES = "delete_invoices"
    VIEW_REPORTS = "view_reports"
    ADMIN_SETTINGS = "admin_settings"
    IMPERSONATE_USERS = "impersonate_users"
    CHAT_REQUESTS = "chat_requests"
    ASSIGN_REQUESTS = "assign_requests"


# ============================================================================
# Service Requests
# ============================================================================

class RequestStatus(str, Enum):
    """
    Request status label - any value may follow any other.

    Two UI surfaces exist for the same field: the detail view offers
    IN_REVIEW/CANCELLED, the list view PENDING_RESPONSE/CLOSED. Both are
    accepted until the product decides which surface wins.
    """
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PENDING_RESPONSE = "pending_response"
    CLOSED = "closed"


DETAIL_STATUS_OPTIONS = [
    RequestStatus.SUBMITTED,
    RequestStatus.IN_PROGRESS,
    RequestStatus.IN_REVIEW,
    RequestStatus.COMPLETED,
    RequestStatus.CANCELLED,
]

LIST_STATUS_OPTIONS = [
    RequestStatus.SUBMITTED,
    RequestStatus.IN_PROGRESS,
    RequestStatus.PENDING_RESPONSE,
    RequestStatus.COMPLETED,
    RequestStatus.CLOSED,
]


class RequestPriority(str, Enum):
    """Request priority label"""
    NONE = "none"  # Default for new requests
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PatchableField(str, Enum):
    """Fields the single-field patch endpoint accepts"""
    TITLE = "title"
    DESCRIPTION = "description"
    STATUS = "status"
    PRIORITY = "priority"
    ASSIGNED_TO = "assigned_to"
    DUE_DATE = "due_date"


# ============================================================================
# Activity Ledger
# ============================================================================

class ActivityAction(str, Enum):
    """Actions written to the activity ledger by this system"""
    REQUEST_SUBMITTED = "request_submitted"
    FIELD_UPDATED = "field_updated"
    MESSAGE_POSTED = "message_posted"


class EntityType(str, Enum):
    """What an activity entry is about"""
    REQUEST = "request"
    FIELD = "field"
    MESSAGE = "message"
