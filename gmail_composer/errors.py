"""
Error types raised by the Gmail composer client.
"""

from typing import Optional


class GmailComposerError(Exception):
    """Base class for all client errors."""


class AuthorizationFailed(GmailComposerError):
    """The interactive consent flow was rejected, cancelled or misconfigured."""


class RefreshFailed(GmailComposerError):
    """Silent token renewal was rejected by the provider."""


class NotAuthenticated(GmailComposerError):
    """No live credential is available; the caller must sign in again."""


class SessionStateError(GmailComposerError):
    """An operation was requested from a session state that does not allow it."""


class ProfileError(GmailComposerError):
    """The signed-in identity could not be resolved."""


class IncompleteProfile(ProfileError):
    """The identity endpoint answered without a display name or email address."""


class ProfileFetchFailed(ProfileError):
    """The identity endpoint could not be reached or answered with an error status."""

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"Failed to fetch user profile: {status} {message}".strip())


class ProviderRequestFailed(GmailComposerError):
    """
    A Gmail API call failed.

    Attributes:
        status: HTTP status code (0 when no response was received)
        message: Provider error message
        operation: Name of the gateway operation that failed
        payload: Provider error payload, unmodified
    """

    def __init__(self, status: int, message: str, operation: str = "", payload: Optional[dict] = None):
        self.status = status
        self.message = message
        self.operation = operation
        self.payload = payload or {}
        prefix = f"{operation} failed" if operation else "Gmail API error"
        super().__init__(f"{prefix} ({status}): {message}")
