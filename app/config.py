"""Application configuration loaded from environment variables.

Uses pydantic-settings for validation and type-safe loading from .env.
Variables are read from .env (e.g., TELEGRAM_BOT_TOKEN, ANTHROPIC_API_KEY).
"""

from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Required: TELEGRAM_BOT_TOKEN, ANTHROPIC_API_KEY
    All other fields have defaults and can be overridden via .env
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Required credentials
    telegram_bot_token: str
    anthropic_api_key: str

    # Webhook / admin security
    webhook_secret: Optional[str] = None
    environment: Literal["development", "staging", "production"] = "development"
    admin_password: Optional[str] = None
    admin_password_staging: Optional[str] = None

    # LLM configuration
    llm_model_name: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2000
    llm_request_timeout_seconds: float = 60.0
    analysis_timeout_seconds: float = 90.0
    parallel_analysis: bool = True
    max_input_chars: int = 20000

    # Conversation limits
    session_ttl_hours: int = 24
    rate_limit_per_minute: int = 10
    max_file_size_mb: int = 10
    min_document_chars: int = 100
    max_document_chars: int = 30000
    allow_pdf: bool = True
    allow_docx: bool = True

    # Storage
    storage_path: str = "./data/kv_store.json"
    log_dir: str = "./logs"

    # Application metadata
    app_name: str = "Resume Matcher Bot"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"
    event_log_retention_days: int = 7

    @field_validator("telegram_bot_token", "anthropic_api_key")
    @classmethod
    def validate_credential(cls, v: str) -> str:
        """Ensure credentials are non-empty and not placeholder values."""
        if not v or v.strip().startswith("your_"):
            raise ValueError("Credential must be set to a valid value (not placeholder)")
        return v

    @property
    def active_admin_password(self) -> Optional[str]:
        """Admin secret for the running environment."""
        if self.environment == "staging":
            return self.admin_password_staging or self.admin_password
        return self.admin_password

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


settings = Settings()
