"""Models for raw nutrition estimation output."""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_MEAL_NAME = "Unknown Meal"
DEFAULT_SERVING = "1 serving"


class EstimatePayload(BaseModel):
    """Model output before normalization into a ``NutritionEstimate``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = UNKNOWN_MEAL_NAME
    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0
    sugar: float = 0.0
    estimated_weight: str = Field(default=DEFAULT_SERVING, alias="estimatedWeight")
    confidence: str | None = None

    @field_validator("calories", "protein", "fat", "carbs", "sugar", mode="before")
    @classmethod
    def _coerce_amount(cls, value: object) -> float:
        return max(_to_float(value), 0.0)

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: object) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return UNKNOWN_MEAL_NAME

    @field_validator("estimated_weight", mode="before")
    @classmethod
    def _default_weight(cls, value: object) -> str:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return f"{value:g}g"
        if isinstance(value, str) and value.strip():
            return value.strip()
        return DEFAULT_SERVING

    @field_validator("confidence", mode="before")
    @classmethod
    def _blank_confidence(cls, value: object) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


def _to_float(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0
