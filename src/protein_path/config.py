"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

ESTIMATION_PROVIDERS = {"gemini", "openai"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    estimation_provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float | None = 0.7
    goals_path: Path = Path(".protein_path/goals.json")
    timezone: str = "UTC"
    history_days: int = 30
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_provider(settings: Settings) -> tuple[str, str]:
    """Return the selected provider name and its API key."""
    provider = settings.estimation_provider.strip().lower()
    if provider not in ESTIMATION_PROVIDERS:
        raise ValueError(
            f"Unknown estimation provider {settings.estimation_provider!r}; "
            f"expected one of {sorted(ESTIMATION_PROVIDERS)}"
        )
    if provider == "gemini":
        api_key = settings.gemini_api_key
    else:
        api_key = settings.openai_api_key
    if not api_key:
        raise ValueError(f"Missing API key for estimation provider {provider!r}")
    return provider, api_key
