"""
Inventory Insights Engine
Centralized Configuration Management

Pydantic settings with environment variable support for the database,
the language-model endpoint and the analytics heuristics.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", env_file=".env", extra="ignore")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="inventory", description="Database name")
    user: str = Field(default="inventory", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full async URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL - uses DATABASE_URL if set"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class LLMSettings(BaseSettings):
    """Hosted language-model endpoint (OpenAI-compatible chat completions)"""

    model_config = SettingsConfigDict(env_prefix="GROQ_", env_file=".env", extra="ignore")

    api_key: Optional[SecretStr] = Field(default=None, description="Bearer credential; unset disables the LLM path")
    base_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="Chat completions endpoint",
    )
    model: str = Field(default="llama-3.1-8b-instant", description="Model identifier")
    temperature: float = Field(default=0.1, description="Sampling temperature")
    max_tokens: int = Field(default=1000, description="Completion token limit")
    timeout_seconds: float = Field(default=20.0, description="Request timeout in seconds")

    @property
    def is_configured(self) -> bool:
        """True when a non-empty credential is present"""
        return bool(self.api_key and self.api_key.get_secret_value().strip())


class AnalyticsSettings(BaseSettings):
    """Heuristics and read limits for the analytics engine"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_", env_file=".env", extra="ignore")

    # Aggregator read limits
    inventory_limit: int = Field(default=100, description="Max inventory rows per snapshot")
    sales_limit: int = Field(default=100, description="Max sales rows per snapshot")
    movement_limit: int = Field(default=200, description="Max stock movement rows for analytics runs")
    query_movement_limit: int = Field(default=50, description="Max stock movement rows for interactive queries")

    # Windows
    trailing_window: int = Field(default=30, description="Sales per trailing window")
    top_products: int = Field(default=5, description="Products in top-N rankings")

    # Forecast
    revenue_growth: float = Field(default=1.15, description="Revenue growth multiplier")
    sales_growth: float = Field(default=1.1, description="Sales count growth multiplier")
    forecast_confidence: int = Field(default=85, description="Fixed forecast confidence (0-100)")

    # Anomalies and recommendations
    velocity_decline_ratio: float = Field(default=0.7, description="Recent/prior sales count ratio that flags a decline")
    high_value_threshold: float = Field(default=100.0, description="Unit price above which items are high value")
    high_value_limit: int = Field(default=3, description="High-value items named in recommendations")
    seasonal_months: List[int] = Field(default=[10, 11, 12, 1], description="Calendar months with seasonal demand")

    # Trend series
    trend_days: int = Field(default=30, description="Days in the revenue trend series")
    trend_prediction_days: int = Field(default=7, description="Most recent days that receive a predicted value")
    trend_jitter_enabled: bool = Field(default=False, description="Perturb predicted values for recent days")
    trend_jitter: float = Field(default=0.10, description="Max relative perturbation of predicted values")
    trend_jitter_seed: Optional[int] = Field(default=None, description="Seed for the perturbation generator")

    @field_validator("trend_jitter")
    @classmethod
    def validate_jitter(cls, v: float) -> float:
        """Jitter must be a fraction in [0, 1)"""
        if not 0 <= v < 1:
            raise ValueError("trend_jitter must be in [0, 1)")
        return v


class SecuritySettings(BaseSettings):
    """Caller identity and CORS Configuration"""

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    caller_header: str = Field(default="X-User-ID", alias="CALLER_HEADER", description="Header carrying the caller identity")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="inventory-insights", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
