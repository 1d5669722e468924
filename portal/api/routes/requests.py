"""
Service Request Routes

Create, read, single-field patch and delete.
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_current_user_dep, get_correlation_id_dep, get_request_repo, get_activity_repo
from ...domain.models import ActorContext, RequestRecord
from ...domain.errors import DomainError
from ...repositories.request_repo import RequestRepository
from ...repositories.activity_repo import ActivityRepository
from ...services.request_service import RequestService
from ...utils.logger import get_logger
from .schemas import CreateServiceRequest, PatchFieldRequest, MessageResponse

logger = get_logger(__name__)
router = APIRouter()


def _service(
    request_repo: RequestRepository = Depends(get_request_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo)
) -> RequestService:
    return RequestService(request_repo, activity_repo)


@router.post("", response_model=RequestRecord, status_code=status.HTTP_201_CREATED)
async def create_request(
    request: CreateServiceRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Create a service request

    Client users always create for their own client record. A
    request_submitted entry is written to the new request's ledger.
    """
    try:
        record = service.create_request(
            title=request.title,
            description=request.description,
            actor=actor,
            client_id=request.client_id,
            priority=request.priority,
            due_date=request.due_date
        )
        logger.info(
            f"Created request: {record.id}",
            extra={"request_id": record.id, "actor_id": actor.id, "impersonated_by": actor.impersonated_by}
        )
        return record
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("", response_model=List[RequestRecord])
async def list_requests(
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """List requests visible to the caller (clients see their own only)"""
    try:
        return service.list_requests(actor)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{request_id}", response_model=RequestRecord)
async def get_request(
    request_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        return service.get_request(request_id, actor)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.patch("/{request_id}", response_model=RequestRecord)
async def patch_request(
    request_id: str,
    request: PatchFieldRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Update exactly one field

    Needs edit_requests (and assign_requests for assigned_to). When
    expected_version is sent and the record has moved on, answers 409.
    """
    try:
        return service.patch_field(
            request_id,
            request.field,
            request.value,
            actor,
            expected_version=request.expected_version
        )
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.delete("/{request_id}", response_model=MessageResponse)
async def delete_request(
    request_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        service.delete_request(request_id, actor)
        return MessageResponse(message="Request deleted successfully")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
