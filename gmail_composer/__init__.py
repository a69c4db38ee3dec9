"""
Gmail Composer Client

Public API exports for session and email operations.
"""

from .config import (
    GMAIL_ENDPOINT,
    REQUEST_TIMEOUT,
    MAX_PARALLEL_REQUESTS,
    RENEWAL_MARGIN_SECONDS,
    SCOPES,
)

from .errors import (
    GmailComposerError,
    AuthorizationFailed,
    RefreshFailed,
    NotAuthenticated,
    SessionStateError,
    ProfileError,
    IncompleteProfile,
    ProfileFetchFailed,
    ProviderRequestFailed,
)

from .models import (
    SessionState,
    Credential,
    Identity,
    Attachment,
    ComposedEmail,
    MessageTree,
    Draft,
)

from .store import (
    SessionStore,
    MemorySessionStore,
    FileSessionStore,
)

from .oauth import GoogleAuthorizer
from .profile import ProfileResolver
from .auth import CredentialLifecycleManager, renewal_delay

from .codec import (
    encode_message,
    build_mime_text,
    decode_message,
    decode_draft,
)

from .api import (
    gmail_request,
    parallel_fetch,
)

from .parsing import (
    html_to_text,
    format_draft_summary,
)

from .gateway import MailGateway

__all__ = [
    # Config
    "GMAIL_ENDPOINT",
    "REQUEST_TIMEOUT",
    "MAX_PARALLEL_REQUESTS",
    "RENEWAL_MARGIN_SECONDS",
    "SCOPES",
    # Errors
    "GmailComposerError",
    "AuthorizationFailed",
    "RefreshFailed",
    "NotAuthenticated",
    "SessionStateError",
    "ProfileError",
    "IncompleteProfile",
    "ProfileFetchFailed",
    "ProviderRequestFailed",
    # Models
    "SessionState",
    "Credential",
    "Identity",
    "Attachment",
    "ComposedEmail",
    "MessageTree",
    "Draft",
    # Session
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "GoogleAuthorizer",
    "ProfileResolver",
    "CredentialLifecycleManager",
    "renewal_delay",
    # Codec
    "encode_message",
    "build_mime_text",
    "decode_message",
    "decode_draft",
    # API
    "gmail_request",
    "parallel_fetch",
    # Parsing
    "html_to_text",
    "format_draft_summary",
    # Gateway
    "MailGateway",
]
