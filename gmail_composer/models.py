"""
Data model for credentials, identities, composed emails and provider drafts.
"""

import enum
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import DEFAULT_EXPIRES_IN
from .parsing import html_to_text


# =============================================================================
# SESSION
# =============================================================================

class SessionState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHORIZING = "authorizing"
    AUTHORIZED = "authorized"
    REFRESH_SCHEDULED = "refresh_scheduled"
    REFRESHING = "refreshing"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Credential:
    """
    Bearer access token plus its validity window.

    Timestamps are Unix epoch seconds. A credential is never updated in
    place; renewal builds a new one.
    """

    access_token: str
    issued_at: float
    expires_at: float
    scope: frozenset = frozenset()
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("Credential requires an access token")
        if self.expires_at <= self.issued_at:
            raise ValueError("Credential expires_at must be later than issued_at")

    @classmethod
    def from_grant(cls, grant: dict, now: float, refresh_token: Optional[str] = None) -> "Credential":
        """
        Build a credential from a provider token grant.

        Args:
            grant: Dict with access_token, expires_in, scope, token_type
                and optionally refresh_token
            now: Issue time (epoch seconds)
            refresh_token: Fallback when the grant does not carry one

        Returns:
            New Credential
        """
        expires_in = grant.get("expires_in") or DEFAULT_EXPIRES_IN
        scope = grant.get("scope") or ""
        if isinstance(scope, str):
            scope = scope.split()
        return cls(
            access_token=grant["access_token"],
            issued_at=now,
            expires_at=now + float(expires_in),
            scope=frozenset(scope),
            token_type=grant.get("token_type") or "Bearer",
            refresh_token=grant.get("refresh_token") or refresh_token,
        )

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def expires_in(self, now: float) -> float:
        """Seconds left before expiry (negative once expired)."""
        return self.expires_at - now

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
            "scope": sorted(self.scope),
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Credential":
        return cls(
            access_token=data["access_token"],
            issued_at=float(data["issued_at"]),
            expires_at=float(data["expires_at"]),
            scope=frozenset(data.get("scope", [])),
            token_type=data.get("token_type", "Bearer"),
            refresh_token=data.get("refresh_token"),
        )


@dataclass(frozen=True)
class Identity:
    """Signed-in user as reported by the identity endpoint."""

    display_name: str
    email_address: str
    avatar_url: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.display_name,
            "email": self.email_address,
            "picture": self.avatar_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        return cls(
            display_name=data["name"],
            email_address=data["email"],
            avatar_url=data.get("picture", ""),
        )


# =============================================================================
# COMPOSED EMAIL
# =============================================================================

@dataclass
class Attachment:
    filename: str
    mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path) -> "Attachment":
        """Read a file from disk, guessing its MIME type from the name."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            mime_type=mime_type or "application/octet-stream",
            data=path.read_bytes(),
        )


@dataclass
class ComposedEmail:
    """
    Editable email document.

    `id` is the provider draft id; it is None until the email is first
    saved as a draft.
    """

    recipient: str = ""
    subject: str = ""
    body_html: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    id: Optional[str] = None

    def missing_fields(self) -> list[str]:
        """
        List the required fields that are blank.

        The body counts as blank when it has no text once tags are stripped.

        Returns:
            Subset of ["recipient", "subject", "body"], in that order
        """
        missing = []
        if not self.recipient.strip():
            missing.append("recipient")
        if not self.subject.strip():
            missing.append("subject")
        if not html_to_text(self.body_html):
            missing.append("body")
        return missing

    def is_blank(self) -> bool:
        return len(self.missing_fields()) == 3


# =============================================================================
# PROVIDER MESSAGE TREE
# =============================================================================

@dataclass(frozen=True)
class MessageTree:
    """One node of a provider message payload: headers, inline body, child parts."""

    mime_type: str = ""
    headers: tuple = ()
    body_data: Optional[str] = None
    parts: tuple = ()

    @classmethod
    def from_payload(cls, payload: dict) -> "MessageTree":
        """
        Build a tree from a Gmail API `payload` dict.

        Args:
            payload: Dict with mimeType, headers, body and optional parts

        Returns:
            MessageTree with children converted recursively
        """
        payload = payload or {}
        headers = tuple(
            (h.get("name", ""), h.get("value", ""))
            for h in payload.get("headers", [])
        )
        return cls(
            mime_type=payload.get("mimeType", ""),
            headers=headers,
            body_data=(payload.get("body") or {}).get("data"),
            parts=tuple(cls.from_payload(p) for p in payload.get("parts", []) or []),
        )

    def header(self, name: str) -> Optional[str]:
        """Return the first header value with this name, ignoring case."""
        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return None


@dataclass(frozen=True)
class Draft:
    id: str
    message_id: str = ""
    thread_id: str = ""
    snippet: str = ""
    payload: MessageTree = field(default_factory=MessageTree)

    @classmethod
    def from_api(cls, data: dict) -> "Draft":
        """Build a draft from a `drafts.get?format=full` response."""
        message = data.get("message", {})
        return cls(
            id=data.get("id", ""),
            message_id=message.get("id", ""),
            thread_id=message.get("threadId", ""),
            snippet=message.get("snippet", ""),
            payload=MessageTree.from_payload(message.get("payload", {})),
        )
