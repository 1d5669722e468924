"""Utility modules - logging, ids, time, tokens and passwords"""
from .logger import get_logger, setup_logging, correlation_scope
from .jwt import JWTValidator, get_current_user, encode_impersonation_header, decode_impersonation_header
from .idgen import generate_id, generate_correlation_id
from .passwords import hash_password, verify_password
from .time import utc_now, format_iso, parse_iso

__all__ = [
    "get_logger",
    "setup_logging",
    "correlation_scope",
    "JWTValidator",
    "get_current_user",
    "encode_impersonation_header",
    "decode_impersonation_header",
    "generate_id",
    "generate_correlation_id",
    "hash_password",
    "verify_password",
    "utc_now",
    "format_iso",
    "parse_iso",
]
