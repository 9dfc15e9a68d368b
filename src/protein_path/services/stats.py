"""Daily summary of meals against macro goals."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from protein_path.domain.goals import UserGoals
from protein_path.domain.meals import Meal
from protein_path.domain.stats import DailySummary, MacroProgress


@dataclass
class StatsService:
    """Computes day windows and progress in the configured timezone."""

    timezone_name: str = "UTC"
    history_days: int = 30

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    def today(self) -> date:
        """Return today's date in the configured timezone."""
        return datetime.now(tz=self.tz).date()

    def clamp_day(self, day: date | None) -> date:
        """Clamp a requested day to the selectable history window."""
        today = self.today()
        if day is None or day > today:
            return today
        earliest = today - timedelta(days=self.history_days)
        return max(day, earliest)

    def summarize(
        self, meals: list[Meal], goals: UserGoals, day: date | None = None
    ) -> DailySummary:
        """Return totals and goal progress for the meals eaten on a day."""
        selected = self.clamp_day(day)
        start_ms, end_ms = self.day_bounds_ms(selected)
        day_meals = sorted(
            (meal for meal in meals if start_ms <= meal.timestamp <= end_ms),
            key=lambda meal: meal.timestamp,
            reverse=True,
        )
        return DailySummary(
            day=selected,
            meals=day_meals,
            calories=_progress(
                sum(meal.nutrition.calories for meal in day_meals), goals.calories
            ),
            protein=_progress(
                sum(meal.nutrition.protein for meal in day_meals), goals.protein
            ),
            carbs=_progress(
                sum(meal.nutrition.carbs for meal in day_meals), goals.carbs
            ),
            fat=_progress(sum(meal.nutrition.fat for meal in day_meals), goals.fat),
            sugar=_progress(
                sum(meal.nutrition.sugar for meal in day_meals), goals.sugar
            ),
        )

    def day_bounds_ms(self, day: date) -> tuple[int, int]:
        """Return the first and last epoch millisecond of a local day."""
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        return _to_ms(start), _to_ms(end) - 1


def _progress(consumed: float, target: float) -> MacroProgress:
    percent = min(consumed / target * 100, 100.0) if target > 0 else 0.0
    return MacroProgress(consumed=consumed, target=target, percent=percent)


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
