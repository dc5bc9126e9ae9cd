"""Application settings using pydantic-settings"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Database
    postgres_host: str = Field(default="localhost")
    postgres_port: int = Field(default=5432)
    postgres_db: str = Field(default="tradejournal")
    postgres_user: str = Field(default="journal")
    postgres_password: str = Field(default="journal")
    postgres_pool_min: int = Field(default=1)
    postgres_pool_max: int = Field(default=5)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # json or console
    log_file: Optional[str] = Field(default=None)

    # What-if analysis
    reference_account_size: float = Field(default=100000.0, gt=0)
    target_risk_percent: float = Field(default=0.02, gt=0, le=1)

    # Balance reconciliation
    reconcile_max_retries: int = Field(default=2, ge=0)
    reconcile_retry_backoff_seconds: float = Field(default=0.5, ge=0)

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v):
        """Only json and console sinks are supported"""
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v


# Global settings instance
settings = Settings()
