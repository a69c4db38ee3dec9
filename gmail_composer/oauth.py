"""
Google OAuth 2.0 flows for an installed application.

Interactive consent through a local redirect server, silent renewal through
the refresh-token grant, and token revocation. Every acquisition returns a
grant dict: {access_token, expires_in, scope, token_type, refresh_token} on
success, {error, error_description} on failure.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from .config import (
    CLIENT_ID,
    CLIENT_SECRET,
    SCOPES,
    AUTH_URI,
    TOKEN_URI,
    REVOKE_URI,
    OAUTH_REDIRECT_PORT,
    REQUEST_TIMEOUT,
    DEFAULT_EXPIRES_IN,
)

logger = logging.getLogger(__name__)


def _error(code: str, description: str) -> dict:
    return {"error": code, "error_description": description}


def _grant_from_credentials(creds: Credentials) -> dict:
    """Convert google-auth credentials into a grant dict."""
    expires_in = DEFAULT_EXPIRES_IN
    if creds.expiry:
        # google-auth keeps expiry as naive UTC
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        expires_in = int((creds.expiry - now).total_seconds())
    return {
        "access_token": creds.token,
        "expires_in": expires_in,
        "scope": " ".join(creds.scopes or []),
        "token_type": "Bearer",
        "refresh_token": creds.refresh_token,
    }


class GoogleAuthorizer:
    """Token acquisition against Google's identity provider."""

    def __init__(
        self,
        client_id: Optional[str] = CLIENT_ID,
        client_secret: Optional[str] = CLIENT_SECRET,
        scopes: Optional[list[str]] = None,
        redirect_port: int = OAUTH_REDIRECT_PORT,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = list(scopes or SCOPES)
        self.redirect_port = redirect_port

    @property
    def configured(self) -> bool:
        return all([self.client_id, self.client_secret])

    def _client_config(self) -> dict:
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": ["http://localhost"],
            }
        }

    def acquire_token_interactive(self, prompt: str = "consent") -> dict:
        """
        Run the browser consent flow.

        Opens the consent page and waits for the redirect on a local server.
        Blocks until the user answers.

        Args:
            prompt: OAuth prompt mode

        Returns:
            Grant dict, or error dict on failure
        """
        if not self.configured:
            logger.error("Google OAuth client not configured in .env")
            return _error("not_configured", "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required")

        flow = InstalledAppFlow.from_client_config(self._client_config(), scopes=self.scopes)

        logger.info("Interactive login required - opening browser...")
        try:
            creds = flow.run_local_server(port=self.redirect_port, prompt=prompt)
        except (OAuth2Error, GoogleAuthError, requests.exceptions.RequestException) as e:
            logger.error(f"Auth failed: {e}")
            return _error(getattr(e, "error", None) or "authorization_failed", str(e))

        logger.info("Access token obtained via interactive login")
        return _grant_from_credentials(creds)

    def acquire_token_silent(self, refresh_token: Optional[str]) -> dict:
        """
        Renew an access token without user interaction.

        Args:
            refresh_token: Refresh token from an earlier consent

        Returns:
            Grant dict (carrying the refresh token used), or error dict
        """
        if not self.configured:
            logger.error("Google OAuth client not configured in .env")
            return _error("not_configured", "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required")
        if not refresh_token:
            return _error("no_refresh_token", "Session holds no refresh token")

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.scopes,
        )

        try:
            creds.refresh(Request())
        except GoogleAuthError as e:
            logger.error(f"Token refresh failed: {e}")
            return _error("refresh_failed", str(e))

        logger.info("Access token renewed silently")
        return _grant_from_credentials(creds)

    def revoke(self, token: str) -> bool:
        """
        Ask the provider to revoke a token.

        Returns:
            True if the provider confirmed the revocation
        """
        try:
            response = requests.post(
                REVOKE_URI,
                params={"token": token},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Token revoke failed: {e}")
            return False

        if response.status_code == 200:
            logger.info("Token revoked")
            return True
        logger.warning(f"Token revoke error {response.status_code}: {response.text[:200]}")
        return False
