"""
Tests for the models module.
"""

import pytest

from gmail_composer.models import Attachment, ComposedEmail, Credential, Identity, MessageTree


class TestCredential:
    """Tests for the credential value type."""

    def test_from_grant(self, sample_grant):
        """Test building a credential from a token grant."""
        credential = Credential.from_grant(sample_grant, now=1000.0)

        assert credential.access_token == "ya29.test_token_123"
        assert credential.issued_at == 1000.0
        assert credential.expires_at == 4600.0
        assert "openid" in credential.scope
        assert credential.token_type == "Bearer"
        assert credential.refresh_token == "1//refresh_abc"

    def test_from_grant_defaults(self):
        """Test defaults for a minimal grant."""
        credential = Credential.from_grant({"access_token": "abc"}, now=0.0, refresh_token="keep")

        assert credential.expires_at == 3600.0
        assert credential.scope == frozenset()
        assert credential.refresh_token == "keep"

    def test_expiry_must_follow_issue(self):
        """Test the validity window invariant."""
        with pytest.raises(ValueError):
            Credential(access_token="abc", issued_at=100.0, expires_at=100.0)
        with pytest.raises(ValueError):
            Credential.from_grant({"access_token": "abc", "expires_in": -5}, now=100.0)

    def test_is_expired(self):
        """Test the expiry boundary."""
        credential = Credential(access_token="abc", issued_at=0.0, expires_at=100.0)

        assert not credential.is_expired(99.9)
        assert credential.is_expired(100.0)
        assert credential.expires_in(40.0) == 60.0

    def test_dict_round_trip(self, sample_grant):
        """Test serialization for the session store."""
        credential = Credential.from_grant(sample_grant, now=1000.0)
        assert Credential.from_dict(credential.to_dict()) == credential


class TestIdentity:
    """Tests for the identity value type."""

    def test_dict_uses_profile_field_names(self, sample_identity):
        """Test that the snapshot keeps the userinfo field names."""
        data = sample_identity.to_dict()

        assert data == {
            "name": "Jane Smith",
            "email": "jane@example.com",
            "picture": "https://lh3.googleusercontent.com/a/jane",
        }
        assert Identity.from_dict(data) == sample_identity


class TestComposedEmail:
    """Tests for the compose document."""

    def test_missing_fields(self):
        """Test detection of blank required fields."""
        email = ComposedEmail(recipient="a@b.com", subject=" ", body_html="<p><br></p>")
        assert email.missing_fields() == ["subject", "body"]
        assert not email.is_blank()

    def test_complete(self):
        """Test an email ready to send."""
        email = ComposedEmail(recipient="a@b.com", subject="Hi", body_html="<p>Hello</p>")
        assert email.missing_fields() == []

    def test_blank(self):
        """Test a fully blank email."""
        assert ComposedEmail().is_blank()


class TestAttachment:
    """Tests for attachments."""

    def test_from_path(self, tmp_path):
        """Test reading an attachment from disk."""
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.4")

        attachment = Attachment.from_path(path)

        assert attachment.filename == "report.pdf"
        assert attachment.mime_type == "application/pdf"
        assert attachment.data == b"%PDF-1.4"

    def test_from_path_unknown_type(self, tmp_path):
        """Test the fallback MIME type."""
        path = tmp_path / "data.unknownext"
        path.write_bytes(b"\x00")

        assert Attachment.from_path(path).mime_type == "application/octet-stream"


class TestMessageTree:
    """Tests for the provider message tree."""

    def test_from_payload_nested(self, sample_draft):
        """Test recursive conversion of payload parts."""
        tree = MessageTree.from_payload(sample_draft["message"]["payload"])

        assert tree.mime_type == "multipart/mixed"
        assert [p.mime_type for p in tree.parts] == ["multipart/alternative", "application/pdf"]
        assert [p.mime_type for p in tree.parts[0].parts] == ["text/plain", "text/html"]
        assert tree.parts[1].body_data is None

    def test_header_case_insensitive(self, sample_draft):
        """Test header lookup ignores case."""
        tree = MessageTree.from_payload(sample_draft["message"]["payload"])

        assert tree.header("To") == "john@example.com"
        assert tree.header("subject") == "Quarterly report"
        assert tree.header("Cc") is None
