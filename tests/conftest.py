"""
Pytest fixtures and configuration for tests.
"""

import base64

import pytest
from unittest.mock import MagicMock

from gmail_composer.auth import CredentialLifecycleManager
from gmail_composer.models import Identity
from gmail_composer.store import MemorySessionStore


NOW = 1_700_000_000.0


def b64url(text: str) -> str:
    """Unpadded base64url, as Gmail returns inline body data."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).rstrip(b"=").decode("ascii")


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_grant():
    """Successful token grant."""
    return {
        "access_token": "ya29.test_token_123",
        "expires_in": 3600,
        "scope": "https://www.googleapis.com/auth/gmail.modify openid",
        "token_type": "Bearer",
        "refresh_token": "1//refresh_abc",
    }


@pytest.fixture
def sample_identity():
    """Resolved identity."""
    return Identity(
        display_name="Jane Smith",
        email_address="jane@example.com",
        avatar_url="https://lh3.googleusercontent.com/a/jane",
    )


@pytest.fixture
def sample_draft():
    """Draft returned by drafts.get?format=full."""
    return {
        "id": "r-123456789",
        "message": {
            "id": "18c0a1b2c3d4e5f6",
            "threadId": "18c0a1b2c3d4e5f6",
            "labelIds": ["DRAFT"],
            "snippet": "Hello there &amp; welcome",
            "payload": {
                "mimeType": "multipart/mixed",
                "headers": [
                    {"name": "to", "value": "john@example.com"},
                    {"name": "SUBJECT", "value": "Quarterly report"},
                    {"name": "Content-Type", "value": "multipart/mixed; boundary=\"b1\""},
                ],
                "body": {"size": 0},
                "parts": [
                    {
                        "mimeType": "multipart/alternative",
                        "headers": [],
                        "body": {"size": 0},
                        "parts": [
                            {
                                "mimeType": "text/plain",
                                "headers": [],
                                "body": {"size": 5, "data": b64url("Hello")},
                            },
                            {
                                "mimeType": "text/html",
                                "headers": [],
                                "body": {"size": 12, "data": b64url("<p>Hello there</p>")},
                            },
                        ],
                    },
                    {
                        "mimeType": "application/pdf",
                        "filename": "report.pdf",
                        "headers": [],
                        "body": {"size": 1024, "attachmentId": "ANGjdJ"},
                    },
                ],
            },
        },
    }


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    """Controllable wall clock."""
    class Clock:
        now = NOW

        def __call__(self):
            return self.now

        def advance(self, seconds):
            self.now += seconds

    return Clock()


@pytest.fixture
def store():
    return MemorySessionStore()


@pytest.fixture
def mock_authorizer(sample_grant):
    """Mock Google authorizer."""
    authorizer = MagicMock()
    authorizer.acquire_token_interactive.return_value = dict(sample_grant)
    authorizer.acquire_token_silent.return_value = {
        **sample_grant,
        "access_token": "ya29.renewed_token",
        "refresh_token": None,
    }
    authorizer.revoke.return_value = True
    return authorizer


@pytest.fixture
def mock_resolver(sample_identity):
    """Mock profile resolver."""
    resolver = MagicMock()
    resolver.resolve.return_value = sample_identity
    return resolver


@pytest.fixture
def manager(store, mock_authorizer, mock_resolver, clock):
    """Session manager wired to test doubles."""
    session = CredentialLifecycleManager(
        store=store,
        authorizer=mock_authorizer,
        profile_resolver=mock_resolver,
        clock=clock,
    )
    yield session
    session.close()


@pytest.fixture
def mock_response():
    """Mock successful HTTP response."""
    response = MagicMock()
    response.status_code = 200
    response.ok = True
    response.content = b"{}"
    response.json.return_value = {}
    return response


@pytest.fixture
def mock_error_response():
    """Mock failed Gmail API response."""
    response = MagicMock()
    response.status_code = 401
    response.ok = False
    response.reason = "Unauthorized"
    response.text = '{"error": {"code": 401, "message": "Invalid Credentials"}}'
    response.json.return_value = {
        "error": {"code": 401, "message": "Invalid Credentials", "status": "UNAUTHENTICATED"}
    }
    return response
