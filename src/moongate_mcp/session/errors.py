"""Exceptions raised while acquiring or using a wallet session."""


class SessionError(Exception):
    """Base exception for session operations."""


class InvalidManualTokenError(SessionError):
    """Raised when the operator-supplied MOONGATE_TOKEN fails upstream validation."""


class CorruptSessionError(SessionError):
    """Raised when the persisted session record cannot be deserialized."""


class OAuthCallbackIncompleteError(SessionError):
    """Raised when the OAuth callback arrives without the required parameters."""


class OAuthTimeoutError(SessionError):
    """Raised when no OAuth callback arrives before the listener times out."""


class SessionExpiredError(SessionError):
    """Raised when the upstream service rejects a token refresh.

    The session is destroyed before this is raised; the user must
    authenticate again by restarting the server.
    """


class NotAuthenticatedError(SessionError):
    """Raised when a token or session is requested but none is established."""
