"""
Profile resolution for the signed-in Google account.
"""

import logging

import requests

from .config import USERINFO_ENDPOINT, REQUEST_TIMEOUT
from .errors import IncompleteProfile, ProfileFetchFailed
from .models import Identity

logger = logging.getLogger(__name__)


class ProfileResolver:
    """Fetch the identity behind a bearer token. Stateless, no retries."""

    def __init__(self, endpoint: str = USERINFO_ENDPOINT, timeout: int = REQUEST_TIMEOUT):
        self.endpoint = endpoint
        self.timeout = timeout

    def resolve(self, access_token: str) -> Identity:
        """
        Get profile info of the logged in user.

        Args:
            access_token: Bearer token

        Returns:
            Identity with display name, email address and avatar URL

        Raises:
            ProfileFetchFailed: Network error or non-2xx response
            IncompleteProfile: Name or email missing from the response
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            response = requests.get(self.endpoint, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Profile request timeout after {self.timeout}s")
            raise ProfileFetchFailed(None, "timeout")
        except requests.exceptions.RequestException as e:
            logger.error(f"Profile request failed: {e}")
            raise ProfileFetchFailed(None, str(e))

        if not response.ok:
            logger.error(f"Profile error {response.status_code}: {response.text[:200]}")
            raise ProfileFetchFailed(response.status_code, response.reason or "")

        try:
            profile = response.json()
        except ValueError:
            raise IncompleteProfile("Profile response is not JSON")

        if not isinstance(profile, dict) or not profile.get("name") or not profile.get("email"):
            raise IncompleteProfile("Incomplete profile data received")

        return Identity(
            display_name=profile["name"],
            email_address=profile["email"],
            avatar_url=profile.get("picture") or "",
        )
