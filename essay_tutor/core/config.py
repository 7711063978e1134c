from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, field_validator
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── AI Providers ──────────────────────────────────────────────────────────
    AI_PROVIDER: str = "gemini"

    @field_validator("AI_PROVIDER")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        allowed = {"gemini", "groq"}
        if v.lower() not in allowed:
            raise ValueError(f"AI_PROVIDER must be one of {allowed}, got '{v}'")
        return v.lower()

    # Google (Gemini - grading, vision, mind maps)
    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "API_KEY"),
    )
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Groq (Llama - text JSON mode, Llama 4 for photographed answers)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_VISION_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"

    # ── Grading ───────────────────────────────────────────────────────────────
    GRADING_TEMPERATURE: float = 0.3  # low for factual consistency
    AI_TIMEOUT_SECONDS: int = 120

    # ── Practice ──────────────────────────────────────────────────────────────
    SUGGESTION_PROVIDER: str = "static"
    SUGGESTION_COUNT: int = Field(default=3, ge=1, le=10)

    @field_validator("SUGGESTION_PROVIDER")
    @classmethod
    def validate_suggestion_provider(cls, v: str) -> str:
        allowed = {"static", "generated"}
        if v.lower() not in allowed:
            raise ValueError(f"SUGGESTION_PROVIDER must be one of {allowed}, got '{v}'")
        return v.lower()

    # ── Limits ────────────────────────────────────────────────────────────────
    MAX_IMAGE_SIZE_MB: int = 10
    MAX_IMAGE_PIXELS: int = 50_000_000  # below Pillow's decompression-bomb limit
    SESSION_LIMIT: int = 1000

    # ── Core ──────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


settings = Settings()
