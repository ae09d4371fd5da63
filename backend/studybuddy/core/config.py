"""
Application configuration via environment variables (12-factor).
Pydantic BaseSettings validates and coerces all values at startup.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # LLM
    # ------------------------------------------------------------------
    llm_provider:    str = "gemini"    # "gemini" | "openai"
    llm_temperature: float = 0.7

    gemini_api_key: str = ""
    gemini_model:   str = "gemini-1.5-flash-latest"

    openai_api_key: str = ""
    openai_model:   str = "gpt-4o-mini"

    # Model-call resilience
    model_max_retries:      int = 3      # total attempts per logical call
    model_retry_base_delay: float = 1.0  # seconds; delay = base * 2^attempt

    # ------------------------------------------------------------------
    # Chunking (no tokenizer: token budgets are converted to characters)
    # ------------------------------------------------------------------
    max_tokens_per_chunk:      int = 25_000
    overlap_tokens:            int = 500
    estimated_chars_per_token: int = 4

    # ------------------------------------------------------------------
    # Tutor / quiz
    # ------------------------------------------------------------------
    tutor_history_limit: int = 10
    quiz_question_count: int = 5

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    app_env:   str = "development"   # development | staging | production
    debug:     bool = False
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
