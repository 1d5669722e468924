"""Request Service - Service request business logic"""
from typing import Any, List, Optional

from ..domain.models import RequestRecord, ActorContext
from ..domain.enums import Permission, Role, RequestPriority, RequestStatus
from ..domain.errors import ValidationError
from ..engine.permission_guard import PermissionGuard
from ..engine.activity_writer import ActivityWriter
from ..engine.field_rules import coerce_field_value
from ..repositories.request_repo import RequestRepository
from ..repositories.activity_repo import ActivityRepository
from ..utils.idgen import generate_request_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RequestService:
    """Service for request operations"""

    def __init__(
        self,
        request_repo: Optional[RequestRepository] = None,
        activity_repo: Optional[ActivityRepository] = None
    ):
        self.request_repo = request_repo if request_repo is not None else RequestRepository()
        self.activity_repo = activity_repo if activity_repo is not None else ActivityRepository()
        self.writer = ActivityWriter(self.activity_repo)
        self.guard = PermissionGuard()

    def create_request(
        self,
        title: str,
        description: Optional[str],
        actor: ActorContext,
        client_id: Optional[str] = None,
        priority: RequestPriority = RequestPriority.NONE,
        due_date: Optional[Any] = None
    ) -> RequestRecord:
        """
        Create a request and write its request_submitted entry

        Client principals always create for their own client record; staff
        must name the client.
        """
        self.guard.require(actor, Permission.CREATE_REQUESTS)
        if not title or not title.strip():
            raise ValidationError("Title cannot be empty")

        if actor.role == Role.CLIENT:
            client_id = getattr(actor.principal, "client_record_id")
        elif not client_id:
            raise ValidationError("client_id is required")

        if due_date is not None:
            _, due_date = coerce_field_value("due_date", due_date)

        now = utc_now()
        record = RequestRecord(
            id=generate_request_id(),
            title=title.strip(),
            description=description,
            status=RequestStatus.SUBMITTED,
            priority=priority,
            client_id=client_id,
            due_date=due_date,
            created_at=now,
            updated_at=now
        )
        record = self.request_repo.create_request(record)
        self.writer.write_request_submitted(record.id, actor.snapshot())
        return record

    def list_requests(self, actor: ActorContext) -> List[RequestRecord]:
        self.guard.require(actor, Permission.VIEW_REQUESTS)
        if actor.role == Role.CLIENT:
            return self.request_repo.list_requests(client_id=getattr(actor.principal, "client_record_id"))
        return self.request_repo.list_requests()

    def get_request(self, request_id: str, actor: ActorContext) -> RequestRecord:
        record = self.request_repo.get_request_or_raise(request_id)
        self.guard.require_view_request(actor, record)
        return record

    def patch_field(
        self,
        request_id: str,
        field_name: str,
        value: Any,
        actor: ActorContext,
        expected_version: Optional[int] = None
    ) -> RequestRecord:
        """
        Update exactly one field

        Status and priority accept any member of their enum from any current
        value. The ledger entry is written by the caller (the client
        pipeline), not here.
        """
        field, coerced = coerce_field_value(field_name, value)
        record = self.request_repo.get_request_or_raise(request_id)
        self.guard.require_patch(actor, record, field)

        updated = self.request_repo.patch_field(
            request_id,
            field.value,
            coerced,
            expected_version=expected_version
        )
        logger.info(
            f"Request field updated: {field.value}",
            extra={
                "request_id": request_id,
                "field": field.value,
                "actor_id": actor.id,
                "impersonated_by": actor.impersonated_by
            }
        )
        return updated

    def delete_request(self, request_id: str, actor: ActorContext) -> None:
        """Delete a request together with its ledger"""
        record = self.request_repo.get_request_or_raise(request_id)
        self.guard.require_view_request(actor, record)
        self.guard.require(actor, Permission.DELETE_REQUESTS)

        self.request_repo.delete_request(request_id)
        self.activity_repo.delete_for_request(request_id)
