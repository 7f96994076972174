"""AdOrchestrator — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional

# Without these the auth provider is unreachable and nothing works.
REQUIRED_ENV_VARS = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_ANON_KEY": "supabase_anon_key",
}

# Missing optional keys only disable the feature that needs them.
OPTIONAL_ENV_VARS = {
    "GOOGLE_AI_API_KEY": "google_ai_api_key",
    "OPENWEATHERMAP_API_KEY": "openweathermap_api_key",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Hosted project (auth provider) ──
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # ── Database ──
    database_url: str = ""
    database_echo: bool = False
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_recycle: int = 300  # seconds

    # ── AI Providers ──
    google_ai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    sarvam_api_key: Optional[str] = None
    default_ai_provider: str = "gemini"  # gemini | claude | sarvam
    gemini_model: str = "gemini-1.5-flash"
    claude_model: str = "claude-sonnet-4-20250514"

    # ── External services ──
    openweathermap_api_key: Optional[str] = None
    google_ads_developer_token: str = ""
    google_ads_api_version: str = "v17"
    google_ads_base_url: str = "https://googleads.googleapis.com"

    # ── Session cookies ──
    session_cookie_name: str = "sb-access-token"
    refresh_cookie_name: str = "sb-refresh-token"
    code_verifier_cookie_name: str = "sb-code-verifier"
    session_cookie_secure: bool = True

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    conversion_sync_minutes: int = 15

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adorchestrator.db"
        return "sqlite:///./adorchestrator.db"

    def missing_required(self) -> list[str]:
        """Names of required variables that are unset or empty."""
        return [
            env_name
            for env_name, field_name in REQUIRED_ENV_VARS.items()
            if not getattr(self, field_name)
        ]

    def missing_optional(self) -> list[str]:
        return [
            env_name
            for env_name, field_name in OPTIONAL_ENV_VARS.items()
            if not getattr(self, field_name)
        ]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def validate_env(config: Optional[Settings] = None) -> None:
    """Fail fast when a required variable is missing, naming all of them."""
    missing = (config or settings).missing_required()
    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )


settings = Settings()
