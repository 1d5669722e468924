"""Session module - Identity, state reducer and durable storage"""
from .identity import SessionIdentity, LoginCredentials, ChangePasswordData
from .state import SessionState, EMPTY_SESSION, reduce
from .storage import SessionStorage, FileSessionStorage, MemorySessionStorage

__all__ = [
    "SessionIdentity",
    "LoginCredentials",
    "ChangePasswordData",
    "SessionState",
    "EMPTY_SESSION",
    "reduce",
    "SessionStorage",
    "FileSessionStorage",
    "MemorySessionStorage",
]
