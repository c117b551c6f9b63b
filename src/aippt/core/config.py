from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from typing import Optional

class Settings(BaseSettings):
    # App/Env
    ENV: str = "dev"
    APP_NAME: str = "aippt"
    PORT: int = 3001
    PUBLIC_BASE_URL: Optional[str] = None
    CORS_ORIGINS: str = "*"  # comma list, or "*"
    MAX_BODY_MB: float = 50.0
    MAX_SESSIONS: int = 200  # oldest session artifacts evicted past this

    # Where page artifacts (png/html) are written and served from (/generated)
    GENERATED_DIR: str = "./generated"

    # Outbound provider calls
    HTTP_TIMEOUT_SEC: float = 300.0
    DOWNLOAD_TIMEOUT_SEC: float = 60.0
    TEXT_RETRY_ATTEMPTS: int = 3
    TEXT_RETRY_DELAY_SEC: float = 1.0  # grows linearly: 1s, 2s, ...
    ANTHROPIC_VERSION: str = "2023-06-01"
    SPLIT_MAX_TOKENS: int = 16384
    HTML_MAX_TOKENS: int = 8192

    # Async image task polling
    POLL_INTERVAL_SEC: float = 3.0
    DASHSCOPE_POLL_ATTEMPTS: int = 60   # ~3 minutes
    MODELSCOPE_POLL_ATTEMPTS: int = 40  # ~2 minutes
    DASHSCOPE_TASK_URL: str = "https://dashscope.aliyuncs.com/api/v1/tasks"

    # Default endpoints shown to the UI (never substituted into requests)
    TEXT_MODEL_BASE_URL: str = Field(
        default="", validation_alias=AliasChoices("TEXT_MODEL_BASE_URL", "ANTHROPIC_BASE_URL")
    )
    TEXT_MODEL_API_KEY: str = Field(
        default="", validation_alias=AliasChoices("TEXT_MODEL_API_KEY", "ANTHROPIC_AUTH_TOKEN")
    )
    TEXT_MODEL_NAME: str = "claude-opus-4-6"
    IMAGE_MODEL_BASE_URL: str = ""
    IMAGE_MODEL_API_KEY: str = ""
    IMAGE_MODEL_NAME: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    def cors_origins(self) -> list[str]:
        raw = (self.CORS_ORIGINS or "*").strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

settings = Settings()
