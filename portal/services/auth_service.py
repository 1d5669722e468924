"""Auth Service - Login, registration, e-mail verification and passwords"""
from typing import Any, Dict, Optional, Tuple

from ..domain.models import UserAccount, ActorContext, principal_from_user
from ..domain.enums import Role, Permission
from ..domain.errors import AuthError, ValidationError, AlreadyExistsError, UserNotFoundError
from ..engine.permission_guard import PermissionGuard
from ..repositories.user_repo import UserRepository
from ..utils.idgen import generate_user_id, generate_verification_token
from ..utils.jwt import get_jwt_validator
from ..utils.passwords import hash_password, verify_password, validate_password
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
UNVERIFIED_CLIENT = "Please verify your email before logging in"


def public_user(account: UserAccount) -> Dict[str, Any]:
    """Account fields safe to return to the caller"""
    return {
        "id": account.user_id,
        "email": account.email,
        "name": account.name,
        "role": account.role.value,
        "client_id": account.client_id,
        "is_verified": account.is_verified,
    }


class AuthService:
    """Service for account operations"""

    def __init__(self, user_repo: Optional[UserRepository] = None):
        self.user_repo = user_repo if user_repo is not None else UserRepository()
        self.guard = PermissionGuard()

    def login(self, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        """
        Check credentials and issue a session token

        Unverified client accounts are refused; staff accounts do not need
        e-mail verification.

        Returns:
            (public user dict, bearer token)
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        account = self.user_repo.get_by_email(email)
        if account is None:
            logger.warning("Login failed: unknown e-mail")
            raise AuthError(INVALID_CREDENTIALS)

        if account.role == Role.CLIENT and not account.is_verified:
            logger.warning("Login refused: unverified client", extra={"actor_id": account.user_id})
            raise AuthError(UNVERIFIED_CLIENT)

        if not verify_password(password, account.password_hash):
            logger.warning("Login failed: bad password", extra={"actor_id": account.user_id})
            raise AuthError(INVALID_CREDENTIALS)

        user = public_user(account)
        token = get_jwt_validator().issue_token(principal_from_user(user))
        logger.info(
            "Login successful",
            extra={"actor_id": account.user_id, "actor_role": account.role.value}
        )
        return user, token

    def register(
        self,
        email: str,
        password: str,
        name: str,
        role: Role = Role.CLIENT,
        client_id: Optional[str] = None,
        actor: Optional[ActorContext] = None
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Create an account

        Anyone may register a client account. Staff accounts need an
        authenticated actor holding create_team. Admin accounts are created
        verified; everyone else gets a verification token.

        Returns:
            (public user dict, verification token or None)
        """
        if not email or not name:
            raise ValidationError("Email, password, and name are required")
        validate_password(password)

        if role != Role.CLIENT:
            if actor is None:
                raise AuthError("Sign in as an administrator to create staff accounts")
            self.guard.require(actor, Permission.CREATE_TEAM)

        if self.user_repo.get_by_email(email) is not None:
            raise AlreadyExistsError("User already exists with this email", details={"email": email})

        verified = role == Role.ADMIN
        user_id = generate_user_id()
        account = UserAccount(
            user_id=user_id,
            email=email.strip().lower(),
            name=name,
            role=role,
            password_hash=hash_password(password),
            client_id=(client_id or user_id) if role == Role.CLIENT else None,
            is_verified=verified,
            verification_token=None if verified else generate_verification_token(),
            created_at=utc_now()
        )
        account = self.user_repo.create_user(account)
        logger.info(
            f"Registered {role.value} account",
            extra={"actor_id": account.user_id, "actor_role": role.value}
        )
        return public_user(account), account.verification_token

    def verify_email(self, token: str) -> Dict[str, Any]:
        if not token:
            raise ValidationError("Verification token is required")
        account = self.user_repo.get_by_verification_token(token)
        if account is None:
            raise ValidationError("Invalid verification token")
        account = self.user_repo.update_user(
            account.user_id,
            {"is_verified": True, "verification_token": None}
        )
        logger.info("Email verified", extra={"actor_id": account.user_id})
        return public_user(account)

    def change_password(
        self,
        actor: ActorContext,
        current_password: str,
        new_password: str
    ) -> Dict[str, Any]:
        """Change the password of the token holder (never of an impersonated target)"""
        if actor.impersonated_by:
            raise AuthError("Passwords cannot be changed while impersonating")
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        validate_password(new_password)

        account = self.user_repo.get_by_id(actor.id)
        if account is None:
            raise UserNotFoundError(f"User {actor.id} not found")
        if not verify_password(current_password, account.password_hash):
            raise AuthError("Current password is incorrect")

        self.user_repo.update_user(account.user_id, {"password_hash": hash_password(new_password)})
        logger.info("Password changed", extra={"actor_id": account.user_id})
        return {"message": "Password changed successfully"}
