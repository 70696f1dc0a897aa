"""Credential acquisition, persistence and refresh for the wallet session."""

from moongate_mcp.session.errors import (
    CorruptSessionError,
    InvalidManualTokenError,
    NotAuthenticatedError,
    OAuthCallbackIncompleteError,
    OAuthTimeoutError,
    SessionError,
    SessionExpiredError,
)
from moongate_mcp.session.manager import SessionManager
from moongate_mcp.session.models import AuthProvider, Session
from moongate_mcp.session.store import SessionStore

__all__ = [
    "AuthProvider",
    "CorruptSessionError",
    "InvalidManualTokenError",
    "NotAuthenticatedError",
    "OAuthCallbackIncompleteError",
    "OAuthTimeoutError",
    "Session",
    "SessionError",
    "SessionExpiredError",
    "SessionManager",
    "SessionStore",
]
