"""Identity models for the authenticated session."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Authenticated:
    """A signed-in user."""

    identity_id: str
    email: str | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class Unauthenticated:
    """No user is signed in."""


Identity = Authenticated | Unauthenticated

UNAUTHENTICATED = Unauthenticated()
