"""
Tanulas - Server Configuration

Settings are read from the process environment. A local `.env` file is
loaded first so development setups don't need exported variables.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_NOTES_LENGTH = 2500
DEFAULT_TOKEN_TTL_SECONDS = 60 * 60 * 3


@dataclass(frozen=True)
class Settings:
    """Server settings."""

    user_secret: Optional[str] = None
    jwt_secret: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    max_notes_length: int = DEFAULT_MAX_NOTES_LENGTH
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8001

    @property
    def provider_configured(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        `USER_SECRET` takes precedence over `WORKSHOP_PASSWORD` so a personal
        deployment can use its own secret without renaming anything.
        """
        return cls(
            user_secret=os.getenv("USER_SECRET") or os.getenv("WORKSHOP_PASSWORD") or None,
            jwt_secret=os.getenv("JWT_SECRET") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            max_notes_length=int(os.getenv("MAX_NOTES_LENGTH", str(DEFAULT_MAX_NOTES_LENGTH))),
            token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", str(DEFAULT_TOKEN_TTL_SECONDS))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8001")),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings (read once, then cached)."""
    return Settings.from_env()
