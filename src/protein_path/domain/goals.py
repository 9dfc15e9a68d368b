"""Daily macro goal models."""

from pydantic import BaseModel, PositiveFloat

DEFAULT_CALORIES = 2500.0
DEFAULT_PROTEIN = 150.0
DEFAULT_CARBS = 300.0
DEFAULT_FAT = 70.0
DEFAULT_SUGAR = 50.0


class UserGoals(BaseModel):
    """Daily macro targets for one identity."""

    calories: PositiveFloat = DEFAULT_CALORIES
    protein: PositiveFloat = DEFAULT_PROTEIN
    carbs: PositiveFloat = DEFAULT_CARBS
    fat: PositiveFloat = DEFAULT_FAT
    sugar: PositiveFloat = DEFAULT_SUGAR


DEFAULT_GOALS = UserGoals()
