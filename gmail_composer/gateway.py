"""
Mail operations against the Gmail API: send, save and load drafts.
"""

import asyncio
import logging

from .api import gmail_request, parallel_fetch
from .auth import CredentialLifecycleManager
from .codec import encode_message
from .config import DRAFTS_PAGE_SIZE
from .errors import NotAuthenticated
from .models import ComposedEmail, Draft

logger = logging.getLogger(__name__)


class MailGateway:
    """
    Gmail operations using the session's live credential.

    Every operation raises NotAuthenticated when no live credential exists,
    and ProviderRequestFailed (naming the operation) when the API refuses.
    """

    def __init__(self, session: CredentialLifecycleManager):
        self._session = session

    def _token(self) -> str:
        credential = self._session.current_credential()
        if credential is None:
            raise NotAuthenticated("Authentication required. Please sign in again.")
        return credential.access_token

    async def _request(self, operation: str, method: str, endpoint: str, **kwargs) -> dict:
        token = self._token()
        return await asyncio.to_thread(
            gmail_request, method, endpoint, token, operation=operation, **kwargs
        )

    async def send(self, email: ComposedEmail) -> dict:
        """
        Send an email.

        Returns:
            Sent message resource (id, threadId, labelIds)
        """
        raw = encode_message(email)
        result = await self._request("send", "POST", "/messages/send", json_data={"raw": raw})
        logger.info(f"Email sent to {email.recipient}, id={result.get('id')}")
        return result

    async def save_draft(self, email: ComposedEmail) -> dict:
        """
        Create a draft, or update it in place when the email has a draft id.

        The returned draft id is written back to `email.id`.

        Returns:
            Draft resource
        """
        payload = {"message": {"raw": encode_message(email)}}
        if email.id:
            result = await self._request("save_draft", "PUT", f"/drafts/{email.id}", json_data=payload)
        else:
            result = await self._request("save_draft", "POST", "/drafts", json_data=payload)

        email.id = result.get("id", email.id)
        logger.info(f"Draft saved, id={email.id}")
        return result

    async def get_draft(self, draft_id: str) -> Draft:
        """Load one draft with its full message tree."""
        data = await self._request("get_draft", "GET", f"/drafts/{draft_id}", params={"format": "full"})
        return Draft.from_api(data)

    async def list_drafts(self) -> list[Draft]:
        """
        List the newest drafts, each loaded in full.

        Returns:
            Drafts in the order the provider listed them

        Raises:
            The first failure among the per-draft loads
        """
        params = {"includeSpamTrash": "false", "maxResults": DRAFTS_PAGE_SIZE}
        data = await self._request("list_drafts", "GET", "/drafts", params=params)
        summaries = data.get("drafts", [])
        logger.debug(f"Loading {len(summaries)} drafts")
        return await parallel_fetch(lambda summary: self.get_draft(summary["id"]), summaries)
