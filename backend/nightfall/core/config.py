"""Application configuration.

Uses Pydantic BaseSettings for declarative environment variable binding.
Pacing delays, decision timeouts and the invariant policy all live here so
that tests can run a whole game without real sleeps.
"""
import logging
from typing import Any, Optional
from pathlib import Path
from dotenv import load_dotenv

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

__all__ = ["settings", "Settings"]


def _find_env_file() -> Optional[Path]:
    """Find .env file from multiple possible locations."""
    current_file = Path(__file__).resolve()
    possible_paths = [
        current_file.parent.parent.parent / '.env',
        current_file.parent.parent.parent.parent / '.env',
        Path.cwd() / '.env',
    ]

    for env_path in possible_paths:
        if env_path.exists():
            logger.info(f"Found .env at: {env_path}")
            return env_path

    logger.warning("No .env file found - using environment variables and defaults")
    return None


_env_path = _find_env_file()
if _env_path:
    load_dotenv(dotenv_path=_env_path, override=False)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Decision collaborator (OpenAI-compatible endpoint) ---
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.7
    LLM_USE_MOCK: bool = False
    DECISION_TIMEOUT_SECONDS: float = 20.0

    # How many log lines a computer player sees when deciding
    SPEECH_HISTORY_LIMIT: int = 10
    ACTION_HISTORY_LIMIT: int = 5

    # --- Pacing (seconds); PACING_ENABLED=false skips every pause ---
    PACING_ENABLED: bool = True
    PACE_REVEAL_SECONDS: float = 4.0
    PACE_WOLVES_SECONDS: float = 4.0
    PACE_WITCH_SECONDS: float = 4.0
    PACE_SEER_SECONDS: float = 4.0
    PACE_SUNRISE_SECONDS: float = 6.0
    PACE_VERDICT_SECONDS: float = 3.0
    PACE_HUNTER_SECONDS: float = 2.0
    PACE_SPEECH_BASE_SECONDS: float = 1.5
    PACE_SPEECH_PER_CHAR_SECONDS: float = 0.05

    # --- Computer player behaviour ---
    AI_WITCH_POISON_CHANCE: float = 0.2

    # Raise on invariant violations instead of logging and ignoring them
    STRICT_INVARIANTS: bool = False

    # --- Application settings ---
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    DEFAULT_LANGUAGE: str = "en"
    MAX_GAMES: int = 1000
    GAME_TTL_SECONDS: int = 7200
    CORS_ORIGINS: Any = "*"  # str from env, overwritten to list[str] by validator

    @model_validator(mode="after")
    def _normalize(self) -> "Settings":
        """Split comma separated values and clamp chances."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        self.AI_WITCH_POISON_CHANCE = min(max(self.AI_WITCH_POISON_CHANCE, 0.0), 1.0)
        if self.DECISION_TIMEOUT_SECONDS <= 0:
            logger.warning("DECISION_TIMEOUT_SECONDS must be positive, using 20s")
            self.DECISION_TIMEOUT_SECONDS = 20.0
        return self

    @property
    def llm_enabled(self) -> bool:
        """Whether real decision requests can be sent."""
        return bool(self.OPENAI_API_KEY) and not self.LLM_USE_MOCK


settings = Settings()
