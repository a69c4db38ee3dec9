"""
Tests for the command line interface.
"""

import pytest
from unittest.mock import patch
from click.testing import CliRunner

from conftest import NOW
from gmail_composer.cli import cli
from gmail_composer.config import SESSION_KEY
from gmail_composer.errors import ProviderRequestFailed
from gmail_composer.models import Credential


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def signed_in(store, sample_identity):
    """Persist a live session snapshot."""
    credential = Credential(
        access_token="ya29.test_token_123",
        issued_at=NOW,
        expires_at=NOW + 3600,
        refresh_token="1//refresh_abc",
    )
    store.set(SESSION_KEY, {"credential": credential.to_dict(), "identity": sample_identity.to_dict()})
    return store


@pytest.fixture
def invoke(runner, manager):
    """Invoke the CLI against the test session manager."""
    def _invoke(*args):
        with patch("gmail_composer.cli.build_session", return_value=manager):
            return runner.invoke(cli, list(args))
    return _invoke


class TestLogin:
    """Tests for login and logout."""

    def test_login(self, invoke, mock_authorizer, store):
        """Test a fresh interactive sign-in."""
        result = invoke("login")

        assert result.exit_code == 0
        assert "Logged in as: Jane Smith (jane@example.com)" in result.output
        mock_authorizer.acquire_token_interactive.assert_called_once_with(prompt="consent")
        assert store.get(SESSION_KEY)["identity"]["email"] == "jane@example.com"

    def test_login_already_signed_in(self, invoke, signed_in, mock_authorizer):
        """Test that a restored session skips the consent flow."""
        result = invoke("login")

        assert result.exit_code == 0
        assert "Already logged in as: Jane Smith" in result.output
        mock_authorizer.acquire_token_interactive.assert_not_called()

    def test_login_denied(self, invoke, mock_authorizer):
        """Test that a rejected consent is reported."""
        mock_authorizer.acquire_token_interactive.return_value = {
            "error": "access_denied",
            "error_description": "The user denied access",
        }

        result = invoke("login")

        assert result.exit_code == 1
        assert "The user denied access" in result.output

    def test_logout(self, invoke, signed_in, mock_authorizer):
        """Test that logout revokes and forgets the session."""
        result = invoke("logout")

        assert result.exit_code == 0
        assert "Logged out" in result.output
        mock_authorizer.revoke.assert_called_once_with("ya29.test_token_123")
        assert signed_in.get(SESSION_KEY) is None

    def test_whoami(self, invoke, signed_in):
        """Test showing the signed-in account."""
        result = invoke("whoami")

        assert result.exit_code == 0
        assert "Jane Smith <jane@example.com>" in result.output

    def test_whoami_signed_out(self, invoke):
        """Test commands that need a session when none exists."""
        result = invoke("whoami")

        assert result.exit_code == 1
        assert "Not signed in" in result.output


class TestDraftCommands:
    """Tests for draft listing and loading."""

    def test_drafts_empty(self, invoke, signed_in):
        """Test the empty-drafts message."""
        with patch("gmail_composer.gateway.gmail_request", return_value={"resultSizeEstimate": 0}):
            result = invoke("drafts")

        assert result.exit_code == 0
        assert "You have no drafts in your Gmail account." in result.output

    def test_drafts_listed(self, invoke, signed_in, sample_draft):
        """Test that each draft is summarised."""
        def fake_request(method, endpoint, token, operation="", **kwargs):
            if endpoint == "/drafts":
                return {"drafts": [{"id": "r-123456789"}]}
            return sample_draft

        with patch("gmail_composer.gateway.gmail_request", side_effect=fake_request):
            result = invoke("drafts")

        assert result.exit_code == 0
        assert "r-123456789  To: john@example.com" in result.output
        assert "Subject: Quarterly report" in result.output
        assert "Hello there & welcome" in result.output

    def test_show(self, invoke, signed_in, sample_draft):
        """Test loading a draft into its fields."""
        with patch("gmail_composer.gateway.gmail_request", return_value=sample_draft):
            result = invoke("show", "r-123456789")

        assert result.exit_code == 0
        assert "To: john@example.com" in result.output
        assert "<p>Hello there</p>" in result.output

    def test_show_provider_error(self, invoke, signed_in):
        """Test that provider failures become command errors."""
        error = ProviderRequestFailed(404, "Requested entity was not found.", "get_draft")

        with patch("gmail_composer.gateway.gmail_request", side_effect=error):
            result = invoke("show", "r-missing")

        assert result.exit_code == 1
        assert "get_draft failed (404)" in result.output


class TestComposeCommands:
    """Tests for send and save-draft."""

    def test_send(self, invoke, signed_in, tmp_path):
        """Test sending with an attachment."""
        attachment = tmp_path / "notes.txt"
        attachment.write_text("notes")

        with patch("gmail_composer.gateway.gmail_request", return_value={"id": "msg1"}) as mock_request:
            result = invoke(
                "send", "--to", "a@b.com", "--subject", "Hi",
                "--body", "<p>Hello</p>", "--attach", str(attachment),
            )

        assert result.exit_code == 0
        assert "Email sent successfully! (id: msg1)" in result.output
        assert mock_request.call_args.args[:2] == ("POST", "/messages/send")

    def test_send_missing_fields(self, invoke, signed_in):
        """Test that blank required fields are rejected before any request."""
        with patch("gmail_composer.gateway.gmail_request") as mock_request:
            result = invoke("send", "--to", "a@b.com", "--body", "<p><br></p>")

        assert result.exit_code == 2
        assert "Please fill in the Subject, Body field(s)." in result.output
        mock_request.assert_not_called()

    def test_send_body_file(self, invoke, signed_in, tmp_path):
        """Test reading the body from a file."""
        body = tmp_path / "body.html"
        body.write_text("<p>From file</p>", encoding="utf-8")

        with patch("gmail_composer.gateway.gmail_request", return_value={"id": "msg2"}):
            result = invoke("send", "--to", "a@b.com", "--subject", "Hi", "--body-file", str(body))

        assert result.exit_code == 0

    def test_save_draft(self, invoke, signed_in):
        """Test creating a draft."""
        with patch("gmail_composer.gateway.gmail_request", return_value={"id": "r-new"}) as mock_request:
            result = invoke("save-draft", "--subject", "Later")

        assert result.exit_code == 0
        assert "Draft saved successfully! (id: r-new)" in result.output
        assert mock_request.call_args.args[:2] == ("POST", "/drafts")

    def test_save_draft_update(self, invoke, signed_in):
        """Test updating an existing draft."""
        with patch("gmail_composer.gateway.gmail_request", return_value={"id": "r-1"}) as mock_request:
            result = invoke("save-draft", "--draft-id", "r-1", "--to", "a@b.com")

        assert result.exit_code == 0
        assert mock_request.call_args.args[:2] == ("PUT", "/drafts/r-1")

    def test_save_draft_blank(self, invoke, signed_in):
        """Test that an empty draft is refused."""
        result = invoke("save-draft")

        assert result.exit_code == 2
        assert "Cannot save an empty draft." in result.output
