"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from protein_path.adapters.gemini_estimation_client import GeminiEstimationClient
from protein_path.adapters.json_file_storage import JsonFileStorage
from protein_path.adapters.openai_estimation_client import OpenAIEstimationClient
from protein_path.adapters.supabase_auth_backend import SupabaseAuthBackend
from protein_path.adapters.supabase_meal_repository import SupabaseMealRepository
from protein_path.config import Settings, resolve_provider
from protein_path.services.estimation import EstimationProvider, EstimationService
from protein_path.services.goals import GoalStore
from protein_path.services.meals import MealService
from protein_path.services.sessions import SessionStore
from protein_path.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    estimation_service: EstimationService
    meal_service: MealService
    goal_store: GoalStore
    stats_service: StatsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    session_store = SessionStore(SupabaseAuthBackend(supabase_client))
    provider = build_estimation_provider(resolved_settings)
    estimation_service = EstimationService(provider)
    meal_service = MealService(
        session_store=session_store,
        repository=SupabaseMealRepository(supabase_client),
        estimation_service=estimation_service,
    )
    goal_store = GoalStore(JsonFileStorage(resolved_settings.goals_path))
    stats_service = StatsService(
        timezone_name=resolved_settings.timezone,
        history_days=resolved_settings.history_days,
    )

    async def close_resources() -> None:
        session_store.close()
        if isinstance(provider, OpenAIEstimationClient | GeminiEstimationClient):
            await provider.close()

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        estimation_service=estimation_service,
        meal_service=meal_service,
        goal_store=goal_store,
        stats_service=stats_service,
        close_resources=close_resources,
    )


def build_estimation_provider(settings: Settings) -> EstimationProvider:
    """Create the estimation provider selected by configuration."""
    provider, api_key = resolve_provider(settings)
    if provider == "openai":
        return OpenAIEstimationClient.create(
            api_key=api_key,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
        )
    return GeminiEstimationClient.create(api_key=api_key, model=settings.gemini_model)
