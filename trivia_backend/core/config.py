from __future__ import annotations

from typing import List, Any, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AnyUrl, AliasChoices, field_validator


class Settings(BaseSettings):
    # Source .env and reject unknown keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",  # strict: a typo in .env fails loudly
    )

    # General
    APP_NAME: str = "Trivia Live Backend"
    API_V1_PREFIX: str = "/api/v1"
    APP_ENV: str = Field(
        "dev",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Application environment: dev|staging|prod",
    )
    LOG_LEVEL: str = Field(
        "INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    BACKEND_PORT: int = Field(
        8000,
        validation_alias=AliasChoices("BACKEND_PORT", "app_port"),
        description="Backend port to bind",
    )

    # Redis (room store)
    REDIS_URL: str = Field(
        "redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
        description="redis:// or rediss:// connection URL",
    )
    ROOM_TTL_SEC: int = 6 * 60 * 60

    # Question bank
    QUESTION_SOURCE: Literal["memory", "supabase"] = Field(
        "memory",
        validation_alias=AliasChoices("QUESTION_SOURCE", "question_source"),
    )

    # Supabase (only needed when QUESTION_SOURCE=supabase)
    SUPABASE_URL: AnyUrl | None = Field(
        None,
        validation_alias=AliasChoices("SUPABASE_URL", "supabase_url"),
        description="Your Supabase project URL",
    )
    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(
        None,
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY", "supabase_service_role_key"),
        description="Service role key (server-side)",
    )
    SUPABASE_SCHEMA: str = Field(
        "public",
        validation_alias=AliasChoices("SUPABASE_SCHEMA", "supabase_schema"),
        description="Supabase schema name",
    )

    # Game pacing (seconds)
    MIN_PLAYERS: int = Field(2, ge=1)
    QUESTION_TIME_LIMIT_SEC: int = Field(30, ge=1)
    START_GRACE_SEC: float = 1.0
    ANSWER_OBSERVATION_SEC: float = 2.0
    ROUND_PACING_SEC: float = 3.0
    GAME_END_DELAY_SEC: float = 3.0
    TICK_SEC: float = 1.0

    # Rooms
    ROOM_CODE_LENGTH: int = 6
    ROOM_CODE_ATTEMPTS: int = 10
    DEFAULT_MAX_PLAYERS: int = 4
    DEFAULT_TOTAL_ROUNDS: int = 10

    # CORS origins
    FRONTEND_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _parse_origins(cls, v: Any) -> Any:
        """
        FRONTEND_ORIGINS may be given in .env as:
        - a JSON array: ["http://localhost:5173","http://localhost:3000"]
        - a comma separated string: http://localhost:5173,http://localhost:3000
        - or with ; as the separator
        """
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    return json.loads(s)
                except ValueError:
                    # broken JSON, fall back to splitting
                    pass
            return [item.strip() for item in s.replace(";", ",").split(",") if item.strip()]
        return v


settings = Settings()
