"""
Activity Ledger Routes

List, append, edit (messages only) and delete ledger entries of a request.
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_current_user_dep, get_correlation_id_dep, get_request_repo, get_activity_repo
from ...domain.models import ActorContext, ActivityLogEntry
from ...domain.errors import DomainError
from ...repositories.request_repo import RequestRepository
from ...repositories.activity_repo import ActivityRepository
from ...services.activity_service import ActivityService
from .schemas import AppendActivityRequest, EditActivityRequest, SuccessResponse

router = APIRouter()


def _service(
    request_repo: RequestRepository = Depends(get_request_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo)
) -> ActivityService:
    return ActivityService(request_repo, activity_repo)


@router.get("/{request_id}/activity", response_model=List[ActivityLogEntry])
async def list_activity(
    request_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ActivityService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Ledger of a request, oldest first"""
    try:
        return service.list_activity(request_id, actor)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post(
    "/{request_id}/activity",
    response_model=ActivityLogEntry,
    status_code=status.HTTP_201_CREATED
)
async def append_activity(
    request_id: str,
    request: AppendActivityRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ActivityService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Append an entry

    The stored actor snapshot is taken from the authenticated actor
    (including impersonation), never from the request body.
    """
    try:
        return service.append(
            request_id,
            request.action,
            actor,
            description=request.description,
            entity_type=request.entity_type,
            claimed_snapshot=request.actor_snapshot
        )
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.put("/{request_id}/activity/{activity_id}", response_model=ActivityLogEntry)
async def edit_activity(
    request_id: str,
    activity_id: str,
    request: EditActivityRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ActivityService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        return service.edit_message(request_id, activity_id, request.description, actor)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.delete("/{request_id}/activity/{activity_id}", response_model=SuccessResponse)
async def delete_activity(
    request_id: str,
    activity_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ActivityService = Depends(_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        service.delete_entry(request_id, activity_id, actor)
        return SuccessResponse()
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
