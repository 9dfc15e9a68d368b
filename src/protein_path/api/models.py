"""Pydantic models for the HTTP API."""

from datetime import date

from pydantic import BaseModel

from protein_path.domain.identity import Authenticated, Identity
from protein_path.domain.meals import Meal, MealType, NutritionData
from protein_path.domain.stats import DailySummary, MacroProgress


class CredentialsIn(BaseModel):
    """Email and password for sign-in or sign-up."""

    email: str
    password: str


class MealIn(BaseModel):
    """A meal to estimate and log.

    ``image_base64`` accepts plain base64 or a ``data:`` URL.
    """

    description: str = ""
    image_base64: str | None = None
    type: MealType = MealType.SNACK


class GoalsIn(BaseModel):
    """Goal update form."""

    calories: float
    protein: float
    carbs: float | None = None
    fat: float | None = None
    sugar: float | None = None


class SessionOut(BaseModel):
    """Current identity; ``access_token`` is only set by sign-in and sign-up."""

    authenticated: bool
    identity_id: str | None = None
    email: str | None = None
    access_token: str | None = None

    @classmethod
    def from_identity(
        cls, identity: Identity, access_token: str | None = None
    ) -> "SessionOut":
        if isinstance(identity, Authenticated):
            return cls(
                authenticated=True,
                identity_id=identity.identity_id,
                email=identity.email,
                access_token=access_token,
            )
        return cls(authenticated=False)


class NutritionOut(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    sugar: float
    estimated_weight: str | None = None

    @classmethod
    def from_nutrition(cls, nutrition: NutritionData) -> "NutritionOut":
        return cls(
            calories=nutrition.calories,
            protein=nutrition.protein,
            carbs=nutrition.carbs,
            fat=nutrition.fat,
            sugar=nutrition.sugar,
            estimated_weight=nutrition.estimated_weight,
        )


class MealOut(BaseModel):
    id: str
    name: str
    timestamp: int
    nutrition: NutritionOut
    type: MealType
    image_url: str | None = None
    description: str | None = None

    @classmethod
    def from_meal(cls, meal: Meal) -> "MealOut":
        return cls(
            id=meal.id,
            name=meal.name,
            timestamp=meal.timestamp,
            nutrition=NutritionOut.from_nutrition(meal.nutrition),
            type=meal.type,
            image_url=meal.image_url,
            description=meal.description,
        )


class ProgressOut(BaseModel):
    consumed: float
    target: float
    percent: float

    @classmethod
    def from_progress(cls, progress: MacroProgress) -> "ProgressOut":
        return cls(
            consumed=progress.consumed,
            target=progress.target,
            percent=progress.percent,
        )


class SummaryOut(BaseModel):
    """Daily totals and goal progress."""

    day: date
    meals: list[MealOut]
    calories: ProgressOut
    protein: ProgressOut
    carbs: ProgressOut
    fat: ProgressOut
    sugar: ProgressOut

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "SummaryOut":
        return cls(
            day=summary.day,
            meals=[MealOut.from_meal(meal) for meal in summary.meals],
            calories=ProgressOut.from_progress(summary.calories),
            protein=ProgressOut.from_progress(summary.protein),
            carbs=ProgressOut.from_progress(summary.carbs),
            fat=ProgressOut.from_progress(summary.fat),
            sugar=ProgressOut.from_progress(summary.sugar),
        )
