"""Domain models for daily summaries."""

from dataclasses import dataclass
from datetime import date

from protein_path.domain.meals import Meal


@dataclass(frozen=True)
class MacroProgress:
    """Consumed amount against a target, as a capped percentage."""

    consumed: float
    target: float
    percent: float


@dataclass(frozen=True)
class DailySummary:
    """Totals and progress for a single day."""

    day: date
    meals: list[Meal]
    calories: MacroProgress
    protein: MacroProgress
    carbs: MacroProgress
    fat: MacroProgress
    sugar: MacroProgress
