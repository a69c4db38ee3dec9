"""
Authentication module for the Gmail API.

Owns the signed-in session: interactive sign-in, restore from the session
store, proactive renewal before expiry and sign-out.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .config import SESSION_KEY, RENEWAL_MARGIN_SECONDS
from .errors import AuthorizationFailed, ProfileError, RefreshFailed, SessionStateError
from .models import Credential, Identity, SessionState
from .profile import ProfileResolver
from .store import SessionStore

logger = logging.getLogger(__name__)

_RENEWABLE_STATES = (
    SessionState.AUTHORIZED,
    SessionState.REFRESH_SCHEDULED,
    SessionState.EXPIRED,
)


def renewal_delay(expires_in_seconds: float) -> float:
    """Seconds to wait before renewing a token that expires in `expires_in_seconds`."""
    return max(0.0, expires_in_seconds - RENEWAL_MARGIN_SECONDS)


class CredentialLifecycleManager:
    """
    Session owner for one signed-in user.

    All public coroutines must run on the same event loop. Blocking provider
    calls run in worker threads; the session state itself is only touched
    from the loop.

    Args:
        store: Durable session store
        authorizer: Provider flows (acquire_token_interactive,
            acquire_token_silent, revoke)
        profile_resolver: Resolves the identity behind an access token
        clock: Wall clock returning epoch seconds
    """

    def __init__(
        self,
        store: SessionStore,
        authorizer,
        profile_resolver: Optional[ProfileResolver] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._authorizer = authorizer
        self._profile_resolver = profile_resolver or ProfileResolver()
        self._clock = clock

        self._state = SessionState.UNAUTHENTICATED
        self._credential: Optional[Credential] = None
        self._identity: Optional[Identity] = None
        self._renewal_handle: Optional[asyncio.TimerHandle] = None
        self._renewal_task: Optional[asyncio.Task] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> SessionState:
        if (
            self._state in (SessionState.AUTHORIZED, SessionState.REFRESH_SCHEDULED)
            and self._credential is not None
            and self._credential.is_expired(self._clock())
        ):
            return SessionState.EXPIRED
        return self._state

    @property
    def is_authorized(self) -> bool:
        return self.state in (SessionState.AUTHORIZED, SessionState.REFRESH_SCHEDULED)

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def current_credential(self) -> Optional[Credential]:
        """
        Return the live credential.

        Returns:
            Credential, or None when signed out, mid-authorization or expired;
            None means the caller must re-authenticate
        """
        if self._credential is None or self._state is SessionState.AUTHORIZING:
            return None
        if self._credential.is_expired(self._clock()):
            return None
        return self._credential

    # =========================================================================
    # SIGN IN / RESTORE
    # =========================================================================

    async def sign_in(self) -> Identity:
        """
        Sign in through the interactive consent flow.

        Returns:
            The resolved identity

        Raises:
            SessionStateError: A session is already active
            AuthorizationFailed: Consent rejected, cancelled or misconfigured
            ProfileError: Identity could not be resolved (session is signed out)
        """
        if self._state is not SessionState.UNAUTHENTICATED:
            raise SessionStateError(f"Cannot sign in from state {self._state.value}")

        self._state = SessionState.AUTHORIZING
        try:
            result = await asyncio.to_thread(
                self._authorizer.acquire_token_interactive, prompt="consent"
            )
        except BaseException:
            self._state = SessionState.UNAUTHENTICATED
            raise

        if "access_token" not in result:
            self._state = SessionState.UNAUTHENTICATED
            description = result.get("error_description") or result.get("error") or "Unknown"
            logger.error(f"Auth failed: {description}")
            raise AuthorizationFailed(description)

        try:
            credential = Credential.from_grant(result, self._clock())
        except (KeyError, ValueError) as e:
            self._state = SessionState.UNAUTHENTICATED
            raise AuthorizationFailed(f"Unusable token grant: {e}")

        self._install(credential)
        self._state = SessionState.AUTHORIZED
        logger.info(f"Signed in (token expires in {int(credential.expires_in(self._clock()))}s)")

        await self._resolve_identity()
        self.schedule_renewal(credential.expires_in(self._clock()))
        return self._identity

    async def restore_session(self) -> SessionState:
        """
        Restore a persisted session at process start.

        An unexpired credential is reused without any prompt. An expired one
        is renewed silently; if that fails the session ends signed out.

        Returns:
            Session state after restoring

        Raises:
            ProfileError: Identity could not be resolved (session is signed out)
        """
        snapshot = self._store.get(SESSION_KEY)
        if not snapshot:
            logger.debug("No persisted session")
            return self.state

        try:
            credential = Credential.from_dict(snapshot["credential"])
            identity = snapshot.get("identity")
            identity = Identity.from_dict(identity) if identity else None
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable session snapshot: {e}")
            self._store.delete(SESSION_KEY)
            return self.state

        self._credential = credential
        self._identity = identity

        now = self._clock()
        if credential.is_expired(now):
            logger.info("Persisted token expired, renewing silently")
            self._state = SessionState.EXPIRED
            try:
                renewed = await self.renew()
            except RefreshFailed as e:
                logger.warning(f"Session could not be restored: {e}")
                return self.state
            if renewed is not None:
                await self._resolve_identity()
            return self.state

        self._state = SessionState.AUTHORIZED
        logger.info(f"Session restored (token expires in {int(credential.expires_in(now))}s)")
        await self._resolve_identity()
        self.schedule_renewal(credential.expires_in(self._clock()))
        return self.state

    # =========================================================================
    # RENEWAL
    # =========================================================================

    def schedule_renewal(self, expires_in_seconds: float) -> None:
        """
        Arm the renewal timer, replacing any pending one.

        Fires RENEWAL_MARGIN_SECONDS before expiry, immediately if that
        moment has passed. Must be called from the event loop.
        """
        self._arm_timer(renewal_delay(expires_in_seconds))

    def _arm_timer(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._renewal_handle = loop.call_later(delay, self._on_renewal_timer)
        if self._state is SessionState.AUTHORIZED:
            self._state = SessionState.REFRESH_SCHEDULED
        logger.debug(f"Token renewal scheduled in {delay:.0f}s")

    def _cancel_timer(self) -> None:
        if self._renewal_handle is not None:
            self._renewal_handle.cancel()
            self._renewal_handle = None

    def _on_renewal_timer(self) -> None:
        self._renewal_handle = None
        if self._credential is None or self._state is SessionState.UNAUTHENTICATED:
            logger.debug("Renewal timer fired without a session, ignoring")
            return
        self._renewal_task = asyncio.ensure_future(self._renew_in_background())

    async def _renew_in_background(self) -> None:
        try:
            await self.renew()
        except RefreshFailed as e:
            logger.error(f"Background renewal failed, signed out: {e}")
        except Exception as e:
            logger.error(f"Background renewal error: {e}", exc_info=True)

    async def renew(self) -> Optional[Credential]:
        """
        Renew the access token without user interaction.

        On failure an unexpired credential is kept and one more attempt is
        armed for its expiry moment; an expired one forces sign-out.

        Returns:
            The credential in use afterwards, or None when renewal was not
            possible from the current state

        Raises:
            RefreshFailed: Renewal failed and no usable credential remains
        """
        state = self.state
        if state not in _RENEWABLE_STATES:
            logger.warning(f"Renewal skipped in state {state.value}")
            return None

        previous = self._credential
        self._cancel_timer()
        self._state = SessionState.REFRESHING

        try:
            result = await asyncio.to_thread(
                self._authorizer.acquire_token_silent, previous.refresh_token
            )
        except asyncio.CancelledError:
            if self._credential is previous:
                self._state = SessionState.AUTHORIZED
            raise
        except Exception as e:
            if self._credential is previous:
                logger.warning(f"Token refresh raised, keeping current token: {e}")
                self._state = SessionState.AUTHORIZED
                remaining = previous.expires_in(self._clock())
                if remaining > 0:
                    self._arm_timer(remaining)
            raise

        if self._credential is not previous:
            logger.info("Session changed during renewal, discarding refreshed token")
            return None

        now = self._clock()
        if "access_token" in result:
            try:
                credential = Credential.from_grant(result, now, refresh_token=previous.refresh_token)
            except (KeyError, ValueError) as e:
                result = {"error": "invalid_grant", "error_description": f"Unusable token grant: {e}"}
            else:
                self._install(credential)
                self._state = SessionState.AUTHORIZED
                self.schedule_renewal(credential.expires_in(now))
                logger.info(f"Token renewed (expires in {int(credential.expires_in(now))}s)")
                return credential

        description = result.get("error_description") or result.get("error") or "Unknown"

        if previous.is_expired(now):
            logger.error(f"Token refresh failed and token expired, signing out: {description}")
            await self.sign_out()
            raise RefreshFailed(description)

        logger.warning(f"Token refresh failed, keeping current token: {description}")
        self._state = SessionState.AUTHORIZED
        self._arm_timer(previous.expires_in(now))
        return previous

    # =========================================================================
    # SIGN OUT
    # =========================================================================

    async def sign_out(self) -> None:
        """
        End the session.

        Cancels the renewal timer before anything else, clears the credential
        and identity, deletes the persisted snapshot, then asks the provider
        to revoke the token (best effort).
        """
        self._cancel_timer()

        token = self._credential.access_token if self._credential else None
        self._credential = None
        self._identity = None
        self._state = SessionState.UNAUTHENTICATED
        self._store.delete(SESSION_KEY)
        logger.info("Signed out")

        if token:
            revoked = await asyncio.to_thread(self._authorizer.revoke, token)
            if not revoked:
                logger.warning("Provider did not confirm token revocation")

    def close(self) -> None:
        """Cancel the pending renewal timer, leaving the session persisted."""
        self._cancel_timer()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _install(self, credential: Credential) -> None:
        self._credential = credential
        self._persist()

    def _persist(self) -> None:
        self._store.set(SESSION_KEY, {
            "credential": self._credential.to_dict(),
            "identity": self._identity.to_dict() if self._identity else None,
        })

    async def _resolve_identity(self) -> None:
        """Resolve and persist the identity; any failure signs the session out."""
        credential = self._credential
        try:
            identity = await asyncio.to_thread(
                self._profile_resolver.resolve, credential.access_token
            )
        except ProfileError as e:
            logger.error(f"Error fetching user profile: {e}")
            if self._credential is credential:
                await self.sign_out()
            raise

        if self._credential is not credential:
            return
        self._identity = identity
        self._persist()
        logger.info(f"Signed in as {identity.display_name} ({identity.email_address})")
