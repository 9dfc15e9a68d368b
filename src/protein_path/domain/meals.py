"""Domain models for logged meals."""

from dataclasses import dataclass
from enum import StrEnum


class MealType(StrEnum):
    """Category tag for a meal."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class NutritionData:
    """Estimated nutrition for a whole meal."""

    calories: float
    protein: float
    carbs: float = 0.0
    fat: float = 0.0
    sugar: float = 0.0
    estimated_weight: str | None = None

    def to_record(self) -> dict[str, object]:
        """Return the JSON shape stored in the ``nutrition`` column."""
        record: dict[str, object] = {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "sugar": self.sugar,
        }
        if self.estimated_weight is not None:
            record["estimatedWeight"] = self.estimated_weight
        return record


@dataclass(frozen=True)
class Meal:
    """A single food-intake event."""

    id: str
    name: str
    timestamp: int
    nutrition: NutritionData
    type: MealType = MealType.SNACK
    image_url: str | None = None
    description: str | None = None
    owner_id: str | None = None


@dataclass(frozen=True)
class NutritionEstimate:
    """Normalized output of the estimation pipeline."""

    name: str
    nutrition: NutritionData
    confidence: str | None = None
