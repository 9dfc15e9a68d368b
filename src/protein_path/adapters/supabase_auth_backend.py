"""Supabase Auth backend for the session store."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from protein_path.domain.identity import UNAUTHENTICATED, Authenticated, Identity
from protein_path.errors import AuthError
from protein_path.services.sessions import AuthBackend, IdentityListener

logger = logging.getLogger(__name__)


@dataclass
class SupabaseAuthBackend(AuthBackend):
    """Email/password auth backed by Supabase."""

    client: Client

    def get_session(self) -> Identity:
        """Return the persisted session, refreshed by the client if needed."""
        return _to_identity(self.client.auth.get_session())

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        """Forward Supabase auth events as identity changes."""

        def handle(event: object, session: object) -> None:
            callback(str(event), _to_identity(session))

        subscription = self.client.auth.on_auth_state_change(handle)
        return subscription.unsubscribe

    def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:
            logger.warning("Sign-in failed: %s", exc)
            raise AuthError(f"Sign-in failed: {exc}") from exc
        identity = _to_identity(response.session)
        if not isinstance(identity, Authenticated):
            raise AuthError("Sign-in did not return a session")
        return identity

    def sign_up(self, email: str, password: str) -> Identity:
        """Register a new account.

        Projects that require email confirmation return no session here; the
        identity stays unauthenticated until the user signs in.
        """
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except Exception as exc:
            logger.warning("Sign-up failed: %s", exc)
            raise AuthError(f"Sign-up failed: {exc}") from exc
        return _to_identity(response.session)

    def sign_out(self) -> None:
        """Sign out of the current session."""
        try:
            self.client.auth.sign_out()
        except Exception as exc:
            logger.warning("Sign-out failed: %s", exc)
            raise AuthError(f"Sign-out failed: {exc}") from exc


def _to_identity(session: object) -> Identity:
    user = getattr(session, "user", None)
    user_id = getattr(user, "id", None)
    if session is None or user_id is None:
        return UNAUTHENTICATED
    expires_at = getattr(session, "expires_at", None)
    return Authenticated(
        identity_id=str(user_id),
        email=getattr(user, "email", None),
        expires_at=(
            datetime.fromtimestamp(expires_at, tz=UTC)
            if isinstance(expires_at, int | float)
            else None
        ),
    )
