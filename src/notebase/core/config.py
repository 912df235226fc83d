"""
Engine configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NOTEBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lowercase level names from the environment."""
        level = str(v).strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    # ==========================================================================
    # Display Sentinels
    # ==========================================================================
    formula_error_display: str = Field(
        default="Error", description="Shown in place of a formula that failed"
    )
    formula_unconfigured_display: str = Field(
        default="Click to configure", description="Shown for a formula column with no source"
    )
    rollup_unconfigured_display: str = Field(
        default="Configure rollup", description="Shown for a rollup that cannot be computed"
    )

    # ==========================================================================
    # Formula Settings
    # ==========================================================================
    now_date_format: str = Field(
        default="%m/%d/%Y", description="strftime format used by now()"
    )
    formula_max_depth: int = Field(
        default=32, description="Maximum nesting of formula columns referencing formulas"
    )
    formula_parse_cache_size: int = Field(
        default=256, description="Number of parsed formula sources kept in memory"
    )

    @field_validator("formula_max_depth", "formula_parse_cache_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Depth and cache size must be positive."""
        if v < 1:
            raise ValueError("Value must be a positive integer")
        return v

    # ==========================================================================
    # Rollup Settings
    # ==========================================================================
    rollup_join_separator: str = Field(
        default=", ", description="Separator for the showOriginal aggregation"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
