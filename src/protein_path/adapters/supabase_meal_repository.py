"""Supabase repository for meals."""

import logging
from dataclasses import dataclass

from supabase import Client

from protein_path.domain.meals import Meal, MealType, NutritionData
from protein_path.errors import StorageError
from protein_path.services.meals import MealRepository

logger = logging.getLogger(__name__)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for the ``meals`` table."""

    client: Client

    def list_meals(self, user_id: str) -> list[Meal]:
        """Return meals owned by the user, newest first."""
        try:
            response = (
                self.client.table("meals")
                .select("*")
                .eq("user_id", user_id)
                .order("timestamp", desc=True)
                .execute()
            )
        except Exception as exc:
            logger.exception("Failed to fetch meals")
            raise StorageError("Failed to fetch meals") from exc
        return [_parse_meal(row) for row in response.data or []]

    def insert_meal(self, user_id: str, meal: Meal) -> Meal:
        """Insert a meal row tagged with the owner and return it."""
        try:
            response = (
                self.client.table("meals").insert(_to_row(user_id, meal)).execute()
            )
        except Exception as exc:
            logger.exception("Failed to add meal", extra={"meal_id": meal.id})
            raise StorageError("Failed to save meal") from exc
        if not response.data:
            raise StorageError("Failed to save meal")
        return _parse_meal(response.data[0])

    def delete_meal(self, user_id: str, meal_id: str) -> None:
        """Delete a meal row matching both id and owner."""
        try:
            self.client.table("meals").delete().eq("id", meal_id).eq(
                "user_id", user_id
            ).execute()
        except Exception as exc:
            logger.exception("Failed to delete meal", extra={"meal_id": meal_id})
            raise StorageError("Failed to delete meal") from exc


def _to_row(user_id: str, meal: Meal) -> dict[str, object]:
    return {
        "id": meal.id,
        "name": meal.name,
        "timestamp": meal.timestamp,
        "nutrition": meal.nutrition.to_record(),
        "imageUrl": meal.image_url,
        "description": meal.description,
        "type": meal.type.value,
        "user_id": user_id,
    }


def _parse_meal(row: dict[str, object]) -> Meal:
    nutrition = row.get("nutrition") or {}
    if not isinstance(nutrition, dict):
        nutrition = {}
    raw_type = row.get("type")
    try:
        meal_type = MealType(raw_type) if raw_type else MealType.SNACK
    except ValueError:
        meal_type = MealType.SNACK
    return Meal(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        timestamp=int(row.get("timestamp") or 0),
        nutrition=NutritionData(
            calories=float(nutrition.get("calories") or 0.0),
            protein=float(nutrition.get("protein") or 0.0),
            carbs=float(nutrition.get("carbs") or 0.0),
            fat=float(nutrition.get("fat") or 0.0),
            sugar=float(nutrition.get("sugar") or 0.0),
            estimated_weight=nutrition.get("estimatedWeight"),
        ),
        type=meal_type,
        image_url=row.get("imageUrl"),
        description=row.get("description"),
        owner_id=str(row["user_id"]) if row.get("user_id") else None,
    )
