"""
Request/response schemas for the portal API
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ...domain.enums import Role, RequestPriority
from ...domain.models import ActorSnapshot


# =============================================================================
# Auth
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    message: str
    user: Dict[str, Any]
    token: str


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str
    name: str = Field(..., min_length=1, max_length=200)
    role: Role = Role.CLIENT
    client_id: Optional[str] = None


class RegisterResponse(BaseModel):
    message: str
    user: Dict[str, Any]
    verification_token: Optional[str] = None


class VerifyEmailRequest(BaseModel):
    token: str


class UserResponse(BaseModel):
    message: str
    user: Dict[str, Any]


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# Requests
# =============================================================================

class CreateServiceRequest(BaseModel):
    """Request to create a service request"""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    client_id: Optional[str] = Field(None, description="Ignored for client users")
    priority: RequestPriority = RequestPriority.NONE
    due_date: Optional[datetime] = None


class PatchFieldRequest(BaseModel):
    """Single-field update"""
    field: str
    value: Any = None
    expected_version: Optional[int] = Field(None, ge=1)


# =============================================================================
# Activity
# =============================================================================

class AppendActivityRequest(BaseModel):
    action: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=10000)
    entity_type: Optional[str] = None
    actor_snapshot: Optional[ActorSnapshot] = Field(
        None,
        description="Informational only; the server stamps the authenticated actor"
    )


class EditActivityRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=10000)


class SuccessResponse(BaseModel):
    success: bool = True
