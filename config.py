"""
Configuration settings for the MicroLearn topic selection engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///microlearn.db",
        description="SQLAlchemy connection string for the topic store",
    )

    # ========================================
    # Selection Weights
    # ========================================
    default_weight: int = Field(
        default=100,
        ge=0,
        description="Base weight for topics without a stored selection weight",
    )
    min_weight: int = Field(
        default=0,
        ge=0,
        description="Lower bound for any selection weight",
    )
    max_weight: int = Field(
        default=200,
        ge=0,
        description="Upper bound for any selection weight",
    )

    # ========================================
    # Feedback Redistribution
    # ========================================
    redistribution_fraction: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Share of a passed topic's weight handed to its peers",
    )
    redistribute_remainder: bool = Field(
        default=False,
        description="Hand out the integer-division remainder instead of dropping it",
    )

    # ========================================
    # Mastery Updates
    # ========================================
    mastery_pass_default_gain: int = Field(
        default=10,
        ge=0,
        description="Mastery points gained on a pass without a score",
    )
    mastery_fail_penalty: int = Field(
        default=2,
        ge=0,
        description="Mastery points lost on a failed completion",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_weight_config(self) -> dict[str, int | float | bool]:
        """Get weight and redistribution configuration as a dictionary."""
        return {
            "default_weight": self.default_weight,
            "min_weight": self.min_weight,
            "max_weight": self.max_weight,
            "redistribution_fraction": self.redistribution_fraction,
            "redistribute_remainder": self.redistribute_remainder,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
