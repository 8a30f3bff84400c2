"""
Duet - Application Settings

Loads configuration from environment variables using Pydantic Settings.
Every variable is prefixed with DUET_ (e.g. DUET_SUPABASE_URL).
"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase (optional; in-memory collaborators are used when unset)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Sessions
    invite_code_length: int = 6
    invite_code_max_attempts: int = 64
    idle_grace_seconds: float = 300.0
    reaper_interval_seconds: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allowed_origins: str = "*"

    model_config = {
        "env_prefix": "DUET_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def supabase_enabled(self) -> bool:
        """True when both Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def cors_origins(self) -> str | list[str]:
        """CORS origins in the shape Socket.IO and FastAPI expect."""
        if self.cors_allowed_origins.strip() == "*":
            return "*"
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
