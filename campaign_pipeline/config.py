import json
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load env values for components that read os.environ directly.
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)


def _coerce_json(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = "sqlite:///./campaign_pipeline.db"
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    AI_GATEWAY_API_KEY: str | None = None
    AI_GATEWAY_BASE_URL: str = "https://ai.gateway.lovable.dev/v1"
    AI_TEXT_MODEL: str = "google/gemini-3-flash-preview"
    AI_IMAGE_MODEL: str = "google/gemini-2.5-flash-image"
    AI_REQUEST_TIMEOUT_SECONDS: float = 120.0

    CAMPAIGN_PAGE_LIMIT: int = 200
    DEFAULT_TONE_OF_VOICE: str = "Professional and friendly"

    GENERATION_SECTION_CONCURRENCY: int = 3
    GENERATION_RATE_LIMIT_MAX_ATTEMPTS: int = 4
    GENERATION_RATE_LIMIT_BACKOFF_SECONDS: float = 2.0
    GENERATION_RATE_LIMIT_BACKOFF_MAX_SECONDS: float = 30.0

    TEMPORAL_ADDRESS: str = "localhost:7233"
    TEMPORAL_NAMESPACE: str = "default"
    TEMPORAL_TASK_QUEUE: str = "campaign-pages"
    CAMPAIGN_PAGE_GENERATION_CONCURRENCY: int = 4

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("GENERATION_SECTION_CONCURRENCY", "GENERATION_RATE_LIMIT_MAX_ATTEMPTS")
    @classmethod
    def at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = SettingsConfigDict(env_file=".env", env_json_loads=_coerce_json, extra="ignore")


settings = Settings()
