"""Error taxonomy for the meal tracking core."""


class ProteinPathError(Exception):
    """Base class for errors raised by the core services."""


class ValidationError(ProteinPathError):
    """Caller input is malformed or insufficient."""


class AuthError(ProteinPathError):
    """No identity is present or an auth operation failed."""


class StaleIdentityError(AuthError):
    """The identity changed while an operation was in flight."""


class StorageError(ProteinPathError):
    """The meal backend rejected or failed a CRUD operation."""


class EstimationError(ProteinPathError):
    """The nutrition estimate could not be produced."""

    def __init__(self, message: str, category: str = "unknown") -> None:
        super().__init__(message)
        self.category = category

    @property
    def retryable(self) -> bool:
        """Return True when the caller may reasonably retry."""
        return self.category in {"rate_limited", "transient"}
