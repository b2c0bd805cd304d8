from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./onebooking.db",
        alias="DATABASE_URL"
    )

    # Staff session tokens
    secret_key: str = Field(default="dev-secret-key-at-least-32-characters-long-for-development", alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = 60

    # CORS - dashboard URLs (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        alias="ALLOWED_ORIGINS"
    )

    # ==============================================
    # Booking Sync
    # ==============================================
    # Currency used when a source omits it
    default_currency: str = Field(default="THB", alias="DEFAULT_CURRENCY")

    # Inbound sync rate limit per client IP
    sync_rate_limit: str = Field(default="100/minute", alias="SYNC_RATE_LIMIT")
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    # Outbound webhooks to source websites
    webhook_timeout_seconds: float = Field(default=10.0, alias="WEBHOOK_TIMEOUT_SECONDS")
    webhook_error_body_limit: int = Field(default=500, alias="WEBHOOK_ERROR_BODY_LIMIT")

    # ==============================================
    # Staff notifications (LINE group chat)
    # ==============================================
    line_channel_access_token: str = Field(default="", alias="LINE_CHANNEL_ACCESS_TOKEN")
    line_group_id: str = Field(default="", alias="LINE_GROUP_ID")
    line_api_base_url: str = Field(default="https://api.line.me/v2/bot", alias="LINE_API_BASE_URL")
    line_timeout_seconds: float = Field(default=5.0, alias="LINE_TIMEOUT_SECONDS")

    # ==============================================
    # Customer e-mail (Resend)
    # ==============================================
    resend_api_key: str = Field(default="", alias="RESEND_API_KEY")
    resend_api_url: str = Field(default="https://api.resend.com/emails", alias="RESEND_API_URL")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: Optional[bool] = Field(default=None, alias="LOG_JSON")

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate SECRET_KEY is strong enough"""
        if not v:
            raise ValueError("SECRET_KEY is required and cannot be empty")
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator('database_url')
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        # Hosted Postgres providers hand out postgres://, SQLAlchemy needs postgresql://
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def line_enabled(self) -> bool:
        return bool(self.line_channel_access_token and self.line_group_id)

    @property
    def use_json_logs(self) -> bool:
        if self.log_json is None:
            return self.is_production
        return self.log_json

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)
        return origins or ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
