"""Field Rules - Validation and ledger wording for single-field request patches"""
from datetime import date, datetime
from enum import Enum
from typing import Any, Tuple

from ..domain.enums import PatchableField, RequestPriority, RequestStatus
from ..domain.errors import ValidationError
from ..utils.time import format_iso, parse_iso


def _coerce_optional_id(value: Any) -> Any:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError("Assignee must be a team member id", details={"value": value})
    return value


def _coerce_due_date(value: Any) -> Any:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return parse_iso(str(value))
    except (ValueError, OverflowError):
        raise ValidationError("Due date must be an ISO 8601 date", details={"value": value})


def coerce_field_value(field_name: str, value: Any) -> Tuple[PatchableField, Any]:
    """
    Validate a patch before it is sent or stored.

    Returns the field as a PatchableField and the value in its domain type
    (enum member, datetime or plain string). Status and priority accept any
    member of their enum regardless of the record's current value.
    """
    try:
        field = PatchableField(field_name)
    except ValueError:
        raise ValidationError(
            f"Field '{field_name}' cannot be updated",
            details={"field": field_name, "allowed": [f.value for f in PatchableField]}
        )

    if field == PatchableField.STATUS:
        try:
            return field, RequestStatus(value)
        except ValueError:
            raise ValidationError(f"Unknown status '{value}'", details={"field": field.value})

    if field == PatchableField.PRIORITY:
        try:
            return field, RequestPriority(value)
        except ValueError:
            raise ValidationError(f"Unknown priority '{value}'", details={"field": field.value})

    if field == PatchableField.TITLE:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Title cannot be empty", details={"field": field.value})
        return field, value.strip()

    if field == PatchableField.DESCRIPTION:
        if value is not None and not isinstance(value, str):
            raise ValidationError("Description must be text", details={"field": field.value})
        return field, value

    if field == PatchableField.ASSIGNED_TO:
        return field, _coerce_optional_id(value)

    return field, _coerce_due_date(value)


def to_wire_value(value: Any) -> Any:
    """JSON-safe form of a coerced value"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_iso(value)
    return value


def describe_field_update(field_name: str, value: Any) -> str:
    """Ledger text for a field change, e.g. 'status updated to completed'"""
    shown = to_wire_value(value)
    if shown is None or shown == "":
        shown = "none"
    return f"{field_name} updated to {shown}"
