"""
Application configuration via environment variables.

Uses Pydantic BaseSettings to load and validate all config from env vars
or a .env.local file. Every setting has a sensible default for local
development so the app can start with minimal configuration; credentials
are validated where they are used, not here.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment selector."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class StorageBackend(str, Enum):
    """Where extractions and CRM mirrors are persisted."""

    MEMORY = "memory"
    SUPABASE = "supabase"


class Settings(BaseSettings):
    """
    Central configuration for the Meeting CRM service.

    Values are loaded from environment variables first, falling back
    to a `.env.local` file in the project root. Secrets should NEVER
    be committed; use `.env.example` as the template.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Environment = Environment.DEVELOPMENT

    # ── OpenAI (completion capability) ───────────────────────────
    openai_api_key: str = Field(default="", description="OpenAI API key for extraction")
    openai_model: str = Field(default="gpt-4o", description="Chat model used for extraction")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")
    openai_timeout_seconds: float = Field(default=60.0, gt=0, description="Completion request timeout")

    # ── HubSpot ──────────────────────────────────────────────────
    hubspot_access_token: str = Field(
        default="",
        validation_alias=AliasChoices("hubspot_access_token", "hubspot_api_key"),
        description="HubSpot private-app access token",
    )
    hubspot_base_url: str = Field(default="https://api.hubapi.com", description="HubSpot API base URL")
    hubspot_timeout_seconds: float = Field(default=30.0, gt=0, description="HubSpot request timeout")

    # ── Storage ──────────────────────────────────────────────────
    storage_backend: StorageBackend = Field(default=StorageBackend.MEMORY, description="Persistence backend")
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_key: str = Field(default="", description="Supabase service-role key")

    # ── Feature Flags ────────────────────────────────────────────
    sync_guard_enabled: bool = Field(
        default=False,
        description="Claim an extraction (false -> true) before syncing; repeat syncs become no-ops",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")

    # ── Derived helpers ──────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached Settings instance.

    Using lru_cache ensures we read env vars exactly once, and every
    module that calls ``get_settings()`` gets the same object.
    """
    return Settings()
