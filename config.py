"""
Configuration settings for the LOGOS engine.

Uses Pydantic Settings for environment variable management with .env file support.
Variables are prefixed with LOGOS_ (e.g. LOGOS_LOG_LEVEL=DEBUG).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from logos.core.config import (
    AbilityConfig,
    BottleneckConfig,
    CalibrationConfig,
    CollocationConfig,
    EngineConfig,
    SchedulerConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOGOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Ability Estimation
    # ========================================
    prior_mean: float = Field(
        default=0.0,
        description="Mean of the ability prior (logits)",
    )
    prior_sd: float = Field(
        default=1.0,
        gt=0,
        description="SD of the ability prior",
    )
    quadrature_points: int = Field(
        default=41,
        ge=21,
        description="Quadrature nodes for EAP estimation",
    )

    # ========================================
    # Calibration
    # ========================================
    calibration_min_respondents: int = Field(
        default=20,
        ge=1,
        description="Respondents required before items are re-estimated",
    )
    calibration_max_iterations: int = Field(
        default=100,
        ge=1,
        description="EM iteration cap",
    )
    calibration_max_standard_error: float = Field(
        default=0.5,
        gt=0,
        description="Estimates with a larger SE are not written back",
    )

    # ========================================
    # FSRS Settings (for spaced repetition)
    # ========================================
    fsrs_desired_retention: float = Field(
        default=0.9,
        gt=0,
        lt=1,
        description="Target retention rate for scheduling",
    )
    fsrs_maximum_interval: int = Field(
        default=365,
        ge=1,
        description="Longest review interval (days)",
    )

    # ========================================
    # Corpus
    # ========================================
    collocation_window: int = Field(
        default=5,
        ge=1,
        description="Co-occurrence window (tokens to the right)",
    )

    # ========================================
    # Bottleneck Detection
    # ========================================
    bottleneck_min_responses: int = Field(
        default=20,
        ge=1,
        description="Responses required before diagnosing a bottleneck",
    )

    def get_engine_config(self) -> EngineConfig:
        """Build the engine configuration from these settings."""
        ability = AbilityConfig(
            prior_mean=self.prior_mean,
            prior_sd=self.prior_sd,
            quadrature_points=self.quadrature_points,
        )
        return EngineConfig(
            ability=ability,
            calibration=CalibrationConfig(
                min_respondents=self.calibration_min_respondents,
                max_iterations=self.calibration_max_iterations,
                max_standard_error=self.calibration_max_standard_error,
                ability=ability,
            ),
            scheduler=SchedulerConfig(
                request_retention=self.fsrs_desired_retention,
                maximum_interval=self.fsrs_maximum_interval,
            ),
            collocation=CollocationConfig(window_size=self.collocation_window),
            bottleneck=BottleneckConfig(min_responses=self.bottleneck_min_responses),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
