from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── AI Providers ──────────────────────────────────────────────────────────
    AI_PROVIDER: str = "hybrid"

    @field_validator("AI_PROVIDER")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        allowed = {"hybrid", "groq", "gemini"}
        if v.lower() not in allowed:
            raise ValueError(f"AI_PROVIDER must be one of {allowed}, got '{v}'")
        return v.lower()

    # Groq (Llama 3 - High Speed)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"

    # Google (Gemini - Long Transcripts)
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # ── Limits ────────────────────────────────────────────────────────────────
    MAX_UPLOAD_SIZE_MB: int = 5      # mind map JSON files
    MAX_VIDEO_SIZE_MB: int = 500
    CHUNK_SIZE: int = 8000  # chars per transcript chunk sent to the model
    AI_TIMEOUT_SECONDS: int = 300

    # ── Player ────────────────────────────────────────────────────────────────
    DEFAULT_VIDEO_URL: str = (
        "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4"
    )
    DEFAULT_DATASET_TIER: str = "medium"

    @field_validator("DEFAULT_DATASET_TIER")
    @classmethod
    def validate_dataset_tier(cls, v: str) -> str:
        allowed = {"small", "medium", "large"}
        if v.lower() not in allowed:
            raise ValueError(f"DEFAULT_DATASET_TIER must be one of {allowed}, got '{v}'")
        return v.lower()

    # ── Graph Layout ──────────────────────────────────────────────────────────
    LAYOUT_RADIUS: float = 300.0
    LAYOUT_NODE_SPACING: float = 180.0  # min arc length between neighbours

    # ── Core ──────────────────────────────────────────────────────────────────
    MEDIA_DIR: Optional[str] = None  # defaults to a fresh temp directory
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:3000",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
