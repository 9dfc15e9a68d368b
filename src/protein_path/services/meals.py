"""Meal logging service scoped to the signed-in identity."""

import logging
import time
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import uuid4

from protein_path.domain.meals import Meal, MealType
from protein_path.services.estimation import EstimationService, to_data_url
from protein_path.services.sessions import SessionStore

logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meals."""

    def list_meals(self, user_id: str) -> list[Meal]:
        """Return meals owned by the user."""

    def insert_meal(self, user_id: str, meal: Meal) -> Meal:
        """Insert a meal for the user and return the stored record."""

    def delete_meal(self, user_id: str, meal_id: str) -> None:
        """Delete a meal matching both id and owner."""


@dataclass
class MealService:
    """Authenticated CRUD over meals plus the capture pipeline."""

    session_store: SessionStore
    repository: MealRepository
    estimation_service: EstimationService

    def list_meals(self) -> list[Meal]:
        """Return the current user's meals, newest first."""
        identity = self.session_store.require_identity()
        meals = self.repository.list_meals(identity.identity_id)
        owned = [meal for meal in meals if meal.owner_id == identity.identity_id]
        if len(owned) != len(meals):
            logger.warning(
                "Dropped %s meals not owned by the current user",
                len(meals) - len(owned),
            )
        return sorted(owned, key=lambda meal: meal.timestamp, reverse=True)

    def add_meal(self, meal: Meal) -> Meal:
        """Persist a meal owned by the current user."""
        identity = self.session_store.require_identity()
        owned = replace(meal, owner_id=identity.identity_id)
        return self.repository.insert_meal(identity.identity_id, owned)

    def remove_meal(self, meal_id: str) -> None:
        """Delete one of the current user's meals.

        Removing an id that does not exist, or that belongs to someone else,
        succeeds without touching any row.
        """
        identity = self.session_store.require_identity()
        self.repository.delete_meal(identity.identity_id, meal_id)

    async def log_meal(
        self,
        description: str,
        image: bytes | None = None,
        meal_type: MealType = MealType.SNACK,
    ) -> Meal:
        """Estimate nutrition for a new meal and persist it."""
        identity = self.session_store.require_identity()
        generation = self.session_store.generation
        estimate = await self.estimation_service.estimate(description, image)
        self.session_store.ensure_generation(generation)
        meal = Meal(
            id=str(uuid4()),
            name=estimate.name,
            timestamp=_now_ms(),
            nutrition=estimate.nutrition,
            type=meal_type,
            image_url=to_data_url(image) if image else None,
            description=description.strip() or None,
            owner_id=identity.identity_id,
        )
        return self.add_meal(meal)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000
