"""Session store tracking the authenticated identity."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from protein_path.domain.identity import (
    UNAUTHENTICATED,
    Authenticated,
    Identity,
)
from protein_path.errors import AuthError, StaleIdentityError

logger = logging.getLogger(__name__)

IdentityListener = Callable[[str, Identity], None]


class AuthBackend(Protocol):
    """Interface for the hosted auth service."""

    def get_session(self) -> Identity:
        """Return the persisted session, if any."""

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        """Register for auth events and return an unsubscribe handle."""

    def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password."""

    def sign_up(self, email: str, password: str) -> Identity:
        """Register a new account."""

    def sign_out(self) -> None:
        """End the current session."""


@dataclass
class SessionStore:
    """Holds the current identity and fans out identity changes.

    Every change of identity id bumps ``generation``. Callers capture the
    generation before awaiting and call ``ensure_generation`` afterwards so a
    result produced for one user is never applied after a switch to another.

    Signing in or up through the store issues an opaque access token.
    ``authorize`` accepts only that token, so holding the process-wide
    session is not enough to act as its user. The token is dropped whenever
    the identity changes.
    """

    auth_backend: AuthBackend
    _identity: Identity = field(default=UNAUTHENTICATED, init=False)
    _generation: int = field(default=0, init=False)
    _listeners: list[IdentityListener] = field(default_factory=list, init=False)
    _unsubscribe: Callable[[], None] | None = field(default=None, init=False)
    _access_token: str | None = field(default=None, init=False, repr=False)

    @property
    def current(self) -> Identity:
        """Return the current identity."""
        return self._identity

    @property
    def generation(self) -> int:
        """Return the identity generation counter."""
        return self._generation

    @property
    def access_token(self) -> str | None:
        """Return the token issued by the last sign-in, if still valid."""
        return self._access_token

    def start(self) -> Identity:
        """Subscribe to auth events and load any persisted session."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth_backend.on_identity_change(
                self._handle_event
            )
        try:
            identity = self.auth_backend.get_session()
        except Exception:
            logger.exception("Session lookup failed, continuing signed out")
            identity = UNAUTHENTICATED
        self._apply("INITIAL_SESSION", identity)
        return self._identity

    def close(self) -> None:
        """Release the auth subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener and return a handle that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, email: str, password: str) -> Identity:
        """Sign in and make the returned identity current."""
        identity = self.auth_backend.sign_in(email, password)
        self._adopt(identity)
        return self._identity

    def sign_up(self, email: str, password: str) -> Identity:
        """Register and adopt the new session when one is issued."""
        identity = self.auth_backend.sign_up(email, password)
        if isinstance(identity, Authenticated):
            self._adopt(identity)
        return identity

    def sign_out(self) -> None:
        """Sign out and clear the current identity."""
        self.auth_backend.sign_out()
        self._access_token = None
        if self._identity != UNAUTHENTICATED:
            self._apply("SIGNED_OUT", UNAUTHENTICATED)

    def require_identity(self) -> Authenticated:
        """Return the signed-in identity or raise ``AuthError``."""
        identity = self._identity
        if not isinstance(identity, Authenticated):
            raise AuthError("Sign in required")
        if identity.expires_at is not None and identity.expires_at <= datetime.now(
            tz=UTC
        ):
            raise AuthError("Session expired, sign in again")
        return identity

    def authorize(self, token: str | None) -> Authenticated:
        """Return the signed-in identity when ``token`` is its access token."""
        identity = self.require_identity()
        expected = self._access_token
        if not token or expected is None or not secrets.compare_digest(
            token, expected
        ):
            raise AuthError("Missing or invalid access token")
        return identity

    def ensure_generation(self, generation: int) -> None:
        """Raise when the identity changed since ``generation`` was read."""
        if generation != self._generation:
            raise StaleIdentityError("Signed-in user changed during the operation")

    def _handle_event(self, event: str, identity: Identity) -> None:
        self._apply(event, identity)

    def _adopt(self, identity: Identity) -> None:
        # The backend usually pushed SIGNED_IN already.
        if identity != self._identity:
            self._apply("SIGNED_IN", identity)
        self._access_token = secrets.token_urlsafe(32)

    def _apply(self, event: str, identity: Identity) -> None:
        if _identity_id(identity) != _identity_id(self._identity):
            self._generation += 1
            self._access_token = None
            logger.info(
                "Identity changed: event=%s generation=%s", event, self._generation
            )
        self._identity = identity
        for listener in list(self._listeners):
            try:
                listener(event, identity)
            except Exception:
                logger.exception("Identity listener failed", extra={"event": event})


def _identity_id(identity: Identity) -> str | None:
    if isinstance(identity, Authenticated):
        return identity.identity_id
    return None
