"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Security
    jwt_secret: str = Field(
        default="change-this-to-a-secure-random-string-in-production",
        description="JWT signing secret shared with the identity provider",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_minutes: int = Field(default=1440, description="JWT expiration (24h)")
    iot_api_key: Optional[str] = Field(
        default=None, description="Shared key expected in the x-growt-iot-key header"
    )

    # Database
    db_path: str = Field(default="./data/growt.duckdb", description="DuckDB file path")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Reporting
    reporting_timezone: str = Field(
        default="UTC", description="IANA zone for month buckets and age reference date"
    )
    dashboard_series_months: int = Field(
        default=12, ge=1, le=120, description="Default trailing window of the monthly series"
    )

    # Health index constants
    health_weight_headcount: float = Field(default=0.4, ge=0.0, le=1.0)
    health_weight_avg_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    health_weight_stuck: float = Field(default=0.3, ge=0.0, le=1.0)
    headcount_drop_saturation_pct: float = Field(
        default=20.0, gt=0.0, description="Headcount drop (%) at which growth risk saturates"
    )
    weight_drop_saturation_pct: float = Field(
        default=10.0, gt=0.0, description="Average weight drop (%) at which weight risk saturates"
    )
    stuck_share_saturation_pct: float = Field(
        default=40.0, gt=0.0, description="Stuck/declining share (%) at which stuck risk saturates"
    )

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("reporting_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def validate_health_weights(self) -> "Settings":
        total = (
            self.health_weight_headcount
            + self.health_weight_avg_weight
            + self.health_weight_stuck
        )
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Health index weights must sum to 1.0, got {total:.4f}")
        return self

    @property
    def tz(self) -> ZoneInfo:
        """Reporting timezone as a tzinfo."""
        return ZoneInfo(self.reporting_timezone)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
