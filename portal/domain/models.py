"""Domain Models - Pydantic schemas for all entities"""
import json
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, field_validator

from .enums import Role, PrincipalKind, RequestStatus, RequestPriority, EntityType


# ============================================================================
# Principals
# ============================================================================

class _PrincipalBase(BaseModel):
    """Fields shared by every principal variant"""
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str = Field(..., description="User id, or the target id while impersonated")
    email: str = Field(..., description="Login e-mail")
    name: str = Field(..., description="Display name")
    impersonated: bool = Field(default=False, description="True when an admin has adopted this identity")

    @property
    def role_name(self) -> str:
        role = getattr(self, "role")
        return role.value if isinstance(role, Role) else str(role)


class AdminPrincipal(_PrincipalBase):
    """Portal administrator"""
    kind: Literal["admin"] = "admin"
    role: Literal["admin"] = "admin"


class TeamMemberPrincipal(_PrincipalBase):
    """Agency staff member"""
    kind: Literal["team_member"] = "team_member"
    role: Role = Field(default=Role.MEMBER)

    @field_validator("role")
    @classmethod
    def _staff_role(cls, value: Role) -> Role:
        if value == Role.CLIENT:
            raise ValueError("team members cannot hold the client role")
        return value


class ClientPrincipal(_PrincipalBase):
    """Client contact logged into the portal"""
    kind: Literal["client"] = "client"
    role: Literal["client"] = "client"
    client_record_id: str = Field(..., alias="clientId")
    client_name: str = Field(..., alias="clientName")
    client_company: Optional[str] = Field(None, alias="clientCompany")


def _principal_kind(value: Any) -> Optional[str]:
    """Pick the union member; records written before `kind` existed fall back to `role`"""
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind:
            return str(kind.value if isinstance(kind, PrincipalKind) else kind)
        role = value.get("role")
        role = role.value if isinstance(role, Role) else role
        if role == Role.CLIENT.value:
            return PrincipalKind.CLIENT.value
        if role == Role.ADMIN.value:
            return PrincipalKind.ADMIN.value
        return PrincipalKind.TEAM_MEMBER.value
    return getattr(value, "kind", None)


Principal = Annotated[
    Union[
        Annotated[AdminPrincipal, Tag(PrincipalKind.ADMIN.value)],
        Annotated[TeamMemberPrincipal, Tag(PrincipalKind.TEAM_MEMBER.value)],
        Annotated[ClientPrincipal, Tag(PrincipalKind.CLIENT.value)],
    ],
    Discriminator(_principal_kind),
]

_principal_adapter: TypeAdapter = TypeAdapter(Principal)


def parse_principal(data: Any) -> Union[AdminPrincipal, TeamMemberPrincipal, ClientPrincipal]:
    """Validate a dict (or JSON string) into the matching principal variant"""
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    return _principal_adapter.validate_python(data)


def principal_from_user(user: Dict[str, Any]) -> Union[AdminPrincipal, TeamMemberPrincipal, ClientPrincipal]:
    """
    Classify a login payload ({id, email, name, role, client_id}) into a principal.

    admin -> AdminPrincipal, client -> ClientPrincipal (company defaults to
    "Individual"), every other role -> TeamMemberPrincipal.
    """
    role = user.get("role")
    base = {"id": user["id"], "email": user["email"], "name": user["name"]}
    if role == Role.ADMIN.value:
        return AdminPrincipal(**base)
    if role == Role.CLIENT.value:
        return ClientPrincipal(
            **base,
            client_record_id=user.get("client_id") or user["id"],
            client_name=user["name"],
            client_company="Individual",
        )
    return TeamMemberPrincipal(**base, role=role or Role.MEMBER)


def dump_principal(principal: _PrincipalBase) -> Dict[str, Any]:
    """Serialize a principal using the wire field names"""
    return principal.model_dump(mode="json", by_alias=True)


# ============================================================================
# Actor Snapshot
# ============================================================================

class ActorSnapshot(BaseModel):
    """
    Copy of the acting principal taken when a ledger entry is written.

    Never re-resolved against the live user record, so history stays
    accurate after renames, role changes or deletions.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    user_id: str
    user_name: str
    user_role: str
    impersonated: bool = False
    impersonated_by: Optional[str] = Field(None, description="Admin id behind an impersonated identity")

    @classmethod
    def from_principal(
        cls,
        principal: _PrincipalBase,
        impersonated_by: Optional[str] = None
    ) -> "ActorSnapshot":
        return cls(
            user_id=principal.id,
            user_name=principal.name,
            user_role=principal.role_name,
            impersonated=principal.impersonated,
            impersonated_by=impersonated_by if principal.impersonated else None,
        )

    def identifies(self, principal: Optional[_PrincipalBase]) -> bool:
        """True when this snapshot was taken from the same (id, impersonated) identity"""
        if principal is None:
            return False
        return self.user_id == principal.id and self.impersonated == principal.impersonated


# ============================================================================
# Service Request
# ============================================================================

class RequestRecord(BaseModel):
    """Service request as held by the collaborator"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Unique request ID")
    title: str
    description: Optional[str] = None
    status: RequestStatus = Field(default=RequestStatus.SUBMITTED)
    priority: RequestPriority = Field(default=RequestPriority.NONE)
    client_id: str
    assigned_to: Optional[str] = Field(None, description="Team member id")
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=1, description="Incremented on every patch")


# ============================================================================
# Activity Ledger
# ============================================================================

class ActivityLogEntry(BaseModel):
    """Activity ledger entry (append-only; message text is the only mutable part)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    request_id: str
    action: str
    description: Optional[str] = None
    entity_type: Optional[str] = None
    actor_snapshot: Optional[ActorSnapshot] = None
    created_at: datetime
    edited_at: Optional[datetime] = None

    @property
    def is_message(self) -> bool:
        return self.entity_type == EntityType.MESSAGE.value


# ============================================================================
# Accounts & Server-side Actor
# ============================================================================

class UserAccount(BaseModel):
    """Login account stored by the collaborator"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    email: str
    name: str
    role: Role
    password_hash: str
    client_id: Optional[str] = Field(None, description="Client record for client accounts")
    is_verified: bool = False
    verification_token: Optional[str] = None
    created_at: datetime


class ActorContext(BaseModel):
    """Effective actor of an API call, resolved from the bearer token"""
    model_config = ConfigDict(extra="forbid")

    principal: Principal
    impersonated_by: Optional[str] = Field(None, description="Admin id when the principal is impersonated")

    @property
    def id(self) -> str:
        return self.principal.id

    @property
    def role(self) -> Role:
        return Role(self.principal.role)

    def snapshot(self) -> ActorSnapshot:
        return ActorSnapshot.from_principal(self.principal, impersonated_by=self.impersonated_by)
