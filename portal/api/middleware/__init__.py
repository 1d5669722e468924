"""
API Middleware Module

- correlation: per-call correlation id, echoed on responses
- error_handlers: DomainError / validation / unexpected error rendering
"""

from .correlation import CorrelationIdMiddleware, CORRELATION_HEADER
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "CORRELATION_HEADER", "register_error_handlers"]
