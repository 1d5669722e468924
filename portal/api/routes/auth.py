"""
Auth Routes

Login, registration, e-mail verification and password change.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_current_user_dep, get_optional_user_dep, get_correlation_id_dep, get_user_repo
from ...domain.models import ActorContext
from ...domain.errors import DomainError
from ...repositories.user_repo import UserRepository
from ...services.auth_service import AuthService
from .schemas import (
    LoginRequest, LoginResponse, RegisterRequest, RegisterResponse,
    VerifyEmailRequest, UserResponse, ChangePasswordRequest, MessageResponse
)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    user_repo: UserRepository = Depends(get_user_repo),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Log in with e-mail and password

    Clients must have verified their e-mail first. The returned token is
    sent as a bearer token on every later call.
    """
    try:
        user, token = AuthService(user_repo).login(request.email, request.password)
        return LoginResponse(message="Login successful", user=user, token=token)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    actor: Optional[ActorContext] = Depends(get_optional_user_dep),
    user_repo: UserRepository = Depends(get_user_repo),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Register an account (staff roles need an administrator's token)"""
    try:
        user, verification_token = AuthService(user_repo).register(
            email=request.email,
            password=request.password,
            name=request.name,
            role=request.role,
            client_id=request.client_id,
            actor=actor
        )
        message = (
            "User registered successfully. Please verify your email."
            if verification_token else "User registered successfully."
        )
        return RegisterResponse(message=message, user=user, verification_token=verification_token)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(
    request: VerifyEmailRequest,
    user_repo: UserRepository = Depends(get_user_repo),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        user = AuthService(user_repo).verify_email(request.token)
        return UserResponse(message="Email verified successfully", user=user)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    user_repo: UserRepository = Depends(get_user_repo),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        result = AuthService(user_repo).change_password(actor, request.current_password, request.new_password)
        return MessageResponse(**result)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
