"""Passwordless authentication state machine.

States move ``anonymous -> link_sent -> verifying -> authenticated`` and back
to ``anonymous`` on logout or expiry. Requesting a link never authenticates the
caller; only a verified token (or the server confirming an existing session)
does.
"""

import logging
from urllib.parse import parse_qs, urlsplit

from blackctrl.auth.session_store import SessionStore
from blackctrl.core.errors import (
    InvalidOrExpiredTokenError,
    TransportError,
    ValidationError,
    VerificationInProgressError,
)
from blackctrl.core.tracing import mask_email
from blackctrl.integrations.outreach_api import OutreachApiClient
from blackctrl.models.session import AuthState, NavigationEvent

logger = logging.getLogger(__name__)

HOME_ROUTE = "/"


def token_from_url(url: str) -> str:
    """Extract the ``token`` query parameter from a magic link.

    Raises:
        ValidationError: The link carries no token
    """
    query = parse_qs(urlsplit(url).query)
    token = (query.get("token") or [""])[0].strip()
    if not token:
        raise ValidationError("token", "No verification token provided.")
    return token


class AuthStateMachine:
    """Owns the session's authentication transitions.

    Args:
        api: Collaborator implementing the auth endpoints
        store: Session store to drive (a fresh anonymous one when omitted)
    """

    def __init__(self, api: OutreachApiClient, store: SessionStore | None = None):
        self.api = api
        self.store = store or SessionStore()

    @property
    def state(self) -> AuthState:
        return self.store.state

    @property
    def is_authenticated(self) -> bool:
        return self.store.is_authenticated

    async def request_link(self, email: str) -> None:
        """Ask for a magic link. State is unchanged when the request fails."""
        email = (email or "").strip()
        if not email:
            raise ValidationError("email", "Please enter your email address to continue.")

        await self.api.request_link(email)
        self.store.mark_link_sent(email)
        logger.info("Magic link requested", extra={"email": mask_email(email)})

    def reset_link(self) -> None:
        """Go back from ``link_sent`` to ``anonymous`` to request another link."""
        if self.store.state is AuthState.LINK_SENT:
            self.store.transition(AuthState.ANONYMOUS)

    async def verify(self, token: str) -> NavigationEvent:
        """Exchange a magic link token for an authenticated session.

        Returns:
            NavigationEvent pointing the presentation layer at the home view

        Raises:
            ValidationError: Blank token
            VerificationInProgressError: Another verification is pending
            InvalidOrExpiredTokenError: Token rejected; prior state restored
            TransportError: Network failure; prior state restored
        """
        token = (token or "").strip()
        if not token:
            raise ValidationError("token", "Please enter the verification token.")
        if self.store.state is AuthState.VERIFYING:
            raise VerificationInProgressError()

        previous = self.store.state
        self.store.transition(AuthState.VERIFYING)
        try:
            await self.api.verify_token(token)
        except (InvalidOrExpiredTokenError, TransportError) as e:
            logger.warning("Token verification failed", extra={"error_kind": e.error_code})
            self.store.transition(previous)
            raise
        except Exception:
            logger.exception("Unrecoverable error during token verification")
            self.store.reset()
            raise

        self.store.mark_authenticated()
        logger.info("Session authenticated")
        return NavigationEvent(route=HOME_ROUTE, reason="authenticated")

    async def check_auth(self) -> bool:
        """Reconcile with the server-side session. Never raises.

        A cached "authenticated" flag short-circuits without a network call.
        Any failure of the status check counts as "not authenticated".
        """
        if self.store.cached_authenticated():
            self.store.transition(AuthState.AUTHENTICATED)
            return True

        try:
            authenticated = await self.api.auth_status()
        except Exception:
            logger.warning("Auth status check failed, staying anonymous", exc_info=True)
            return False

        if authenticated:
            self.store.mark_authenticated()
        elif self.store.is_authenticated:
            self.store.reset()
        return authenticated

    async def logout(self) -> None:
        """Invalidate the server session, then clear local state no matter what.

        A failure of the remote call is re-raised after the local reset.
        """
        try:
            await self.api.logout()
        finally:
            self.store.reset()
            logger.info("Session cleared")

    def expire(self) -> None:
        """Reset after a collaborator reported the session as expired."""
        if self.store.is_authenticated:
            logger.warning("Session expired on the server")
        self.store.reset()
