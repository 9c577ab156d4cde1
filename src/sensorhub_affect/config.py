"""Centralised settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sensorhub_affect.affect.models import ClassifierThresholds

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All runtime configuration for the affect pipeline.

    Values are read from ``SENSORHUB_``-prefixed environment variables
    first, then from a *.env* file at the project root.  Threshold
    overrides use a double underscore, e.g.
    ``SENSORHUB_AFFECT_THRESHOLDS__CALM_STD=0.25``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SENSORHUB_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Feature window ────────────────────────────────────────
    affect_window_size: int = Field(30, ge=2)  # samples per sliding window
    affect_max_magnitude: float = Field(1000.0, gt=0)  # clamp for absurd readings (m/s²)

    # ── Aggregation & history ─────────────────────────────────
    affect_aggregation_window: int = Field(10, ge=1)  # emotions blended per state
    affect_emotion_history_size: int = Field(1000, ge=1)
    affect_state_history_size: int = Field(1000, ge=1)
    affect_display_history_size: int = Field(50, ge=1)

    # ── Classifier ────────────────────────────────────────────
    affect_thresholds: ClassifierThresholds = Field(default_factory=ClassifierThresholds)


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
