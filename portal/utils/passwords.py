"""Password hashing (bcrypt)"""
import bcrypt

from ..domain.errors import ValidationError
from .logger import get_logger

logger = get_logger(__name__)

# bcrypt truncates passwords at 72 bytes; reject instead of silently truncating.
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 6


def validate_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password exceeds the 72-byte limit")


def hash_password(password: str) -> str:
    validate_password(password)
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Stored password hash is invalid: {e}")
        return False
