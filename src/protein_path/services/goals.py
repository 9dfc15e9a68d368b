"""Local per-identity storage of daily macro goals."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from protein_path.domain.goals import (
    DEFAULT_CARBS,
    DEFAULT_FAT,
    DEFAULT_SUGAR,
    UserGoals,
)
from protein_path.errors import ValidationError

logger = logging.getLogger(__name__)

GOALS_KEY_PREFIX = "protein_path_goals"


class KeyValueStorage(Protocol):
    """Interface for local string key-value persistence."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""

    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""


@dataclass
class GoalStore:
    """Loads and saves goals; failures fall back to defaults."""

    storage: KeyValueStorage

    def load(self, identity_key: str) -> UserGoals:
        """Return saved goals, or the defaults when missing or unreadable."""
        key = goals_key(identity_key)
        try:
            raw = self.storage.get_item(key)
        except Exception:
            logger.exception("Failed to read goals", extra={"key": key})
            return UserGoals()
        if raw is None:
            return UserGoals()
        try:
            return UserGoals.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Ignoring unreadable goals", extra={"key": key})
            return UserGoals()

    def save(self, identity_key: str, goals: UserGoals) -> None:
        """Overwrite the saved goals for an identity."""
        key = goals_key(identity_key)
        try:
            self.storage.set_item(key, goals.model_dump_json())
        except Exception:
            logger.exception("Failed to save goals", extra={"key": key})

    def update(  # noqa: PLR0913
        self,
        identity_key: str,
        *,
        calories: float,
        protein: float,
        carbs: float | None = None,
        fat: float | None = None,
        sugar: float | None = None,
    ) -> UserGoals:
        """Save new goals; calories and protein are required."""
        if not calories or calories <= 0 or not protein or protein <= 0:
            raise ValidationError("Calorie and protein goals must be positive")
        try:
            goals = UserGoals(
                calories=calories,
                protein=protein,
                carbs=carbs or DEFAULT_CARBS,
                fat=fat or DEFAULT_FAT,
                sugar=sugar or DEFAULT_SUGAR,
            )
        except PydanticValidationError as exc:
            raise ValidationError("Goals must be positive numbers") from exc
        self.save(identity_key, goals)
        return goals


def goals_key(identity_key: str) -> str:
    """Return the storage key for an identity's goals."""
    return f"{GOALS_KEY_PREFIX}:{identity_key}"
