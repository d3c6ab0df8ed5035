"""
Configuration settings for the cadence scheduling engine.

Uses Pydantic Settings for environment variable management with .env file support.
The engine components never read these settings directly; they take plain
config dataclasses built from them (see SchedulerConfig.from_settings).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
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
    # Scheduling Policy
    # ========================================
    scheduling_policy: Literal["stability_difficulty", "ease_factor", "mastery_score"] = Field(
        default="stability_difficulty",
        description="Scheduling policy variant, selected once per deployment",
    )
    desired_retention: float = Field(
        default=0.9,
        gt=0.0,
        lt=1.0,
        description="Target recall probability used for intervals and due checks",
    )

    # ========================================
    # Memory Model Bounds
    # ========================================
    min_stability: float = Field(
        default=0.1,
        gt=0.0,
        description="Stability floor (days)",
    )
    max_stability: float = Field(
        default=730.0,
        gt=0.0,
        description="Stability cap (days), also the longest interval",
    )
    min_ease: float = Field(
        default=1.3,
        description="Lowest ease factor",
    )
    max_ease: float = Field(
        default=3.0,
        description="Highest ease factor",
    )
    initial_ease: float = Field(
        default=2.5,
        description="Ease factor given to new cards",
    )
    hard_interval: float = Field(
        default=1.2,
        description="Interval multiplier for a 'hard' grade",
    )
    easy_bonus: float = Field(
        default=1.3,
        description="Extra multiplier for an 'easy' grade",
    )
    graduation_reps: int = Field(
        default=2,
        ge=1,
        description="Successful gradings needed to leave Learning/Relearning",
    )

    # ========================================
    # Retirement (advisory)
    # ========================================
    mastery_stability: float = Field(
        default=365.0,
        description="Stability at which a card counts as mastered",
    )
    mastery_interval_days: int = Field(
        default=180,
        description="Interval at which a card counts as mastered (ease variants)",
    )
    exclude_mastered: bool = Field(
        default=True,
        description="Leave mastered cards out of session pools",
    )

    # ========================================
    # Study Pool
    # ========================================
    requeue_min_offset: int = Field(
        default=2,
        ge=1,
        description="Minimum forward offset when requeueing a card",
    )
    requeue_jitter: int = Field(
        default=2,
        ge=0,
        description="Random extra offset added to the minimum",
    )
    session_seed: int | None = Field(
        default=None,
        description="Seed for the per-session random source",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path",
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> Settings:
        """Reject ranges that would make clamping or mastery impossible."""
        if self.min_stability > self.max_stability:
            raise ValueError("min_stability must not exceed max_stability")
        if not self.min_ease <= self.initial_ease <= self.max_ease:
            raise ValueError("initial_ease must lie between min_ease and max_ease")
        if self.mastery_stability > self.max_stability:
            raise ValueError("mastery_stability above max_stability can never be reached")
        if self.mastery_interval_days > int(self.max_stability):
            raise ValueError("mastery_interval_days above the longest interval can never be reached")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
